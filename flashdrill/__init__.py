"""
flashdrill: self-study flashcard trainer.

Lesson text is parsed into question/answer cards; a score-based scheduler
decides which card to show next.
"""

__version__ = "1.0.0"
