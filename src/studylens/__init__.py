"""studylens: learning analytics and scoring for flashcard study history."""

from studylens.consts import VERSION

__version__ = VERSION
