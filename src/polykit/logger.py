"""Package logger.

Records go to ``polykit_logger`` (the ``"polykit"`` logger):

* ``DEBUG``: a new best consensus candidate and its iteration bound, and
  changes of the PROSAC termination length.
* ``INFO``: a robust estimation finished (method, iterations, inliers).
* ``WARNING``: a least-squares fit or the final consensus refit failed.

No handlers are installed; applications configure ``logging`` themselves.
"""
import logging

polykit_logger = logging.getLogger("polykit")
