"""Base exception for fmu-annotate."""


class FmuAnnotateError(Exception):
    """Base exception for all fmu-annotate errors.

    Keyword arguments become ``details``, rendered after the message as
    ``key=value`` pairs. Details that are None are left out.
    """

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = {k: str(v) for k, v in details.items() if v is not None}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        rendered = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({rendered})"
