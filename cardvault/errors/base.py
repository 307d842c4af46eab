from typing import Any


class ApplicationError(Exception):
    """General application error"""

    http_code: int | None = None
    error_code: int
    error: str
    where: str | None = None
    # raise an operational alarm in addition to the error response
    alert: bool = False

    def __init__(self, details: Any | None = None, where: str | None = None):
        self.error = self.error
        if details:
            self.error += f": {details}"
        if where:
            self.where = where
        super().__init__(self.error)
