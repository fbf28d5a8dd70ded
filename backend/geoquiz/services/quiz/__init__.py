"""Quiz domain services: proximity gate, question cache and scoring.

This package holds the validation-and-scoring core. It knows nothing about
Flask requests or sockets; HTTP routes and socket handlers call into
``QuizService`` and map its results onto their own wire formats.
"""

from .errors import QuizError, QuizStoreError
from .service import QuizService, RefreshResult

__all__ = ['QuizError', 'QuizStoreError', 'QuizService', 'RefreshResult']
