class QuizError(Exception):
    """Base class for unexpected failures inside the quiz core."""


class QuizStoreError(QuizError, IOError):
    """The durable store could not be read or written."""
