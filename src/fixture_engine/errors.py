"""Exceptions raised by the fixture engine."""


class FixtureError(Exception):
    """Base exception for all fixture engine errors."""

    pass


class ValidationError(FixtureError, ValueError):
    """Raised when a generation request cannot be satisfied.

    Carries a stable ``code`` slug so callers can map the failure onto their own
    transport (HTTP problem details, CLI exit codes, ...).
    """

    status = 400

    def __init__(self, code: str, title: str, detail: str = ''):
        super().__init__(f"{title}: {detail}" if detail else title)
        self.code = code
        self.title = title
        self.detail = detail

    def to_dict(self):
        return {
            'type': self.code,
            'title': self.title,
            'status': self.status,
            'detail': self.detail,
        }


class ConfigError(FixtureError):
    """Raised when a YAML configuration file is missing or malformed."""

    pass
