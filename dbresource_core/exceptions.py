from typing import Iterable


class DbResourceError(Exception):
    pass


class DbResourceNotImplementedError(DbResourceError):
    def __init__(self, msg=None):
        super().__init__(msg)


class MissingBindParameterError(DbResourceError):
    """Raised when named parameters in SQL have no supplied bind value."""

    def __init__(self, names: Iterable[str]):
        self.names = list(names)
        if len(self.names) == 1:
            msg = f"Missing bind parameter [{self.names[0]}]"
        else:
            msg = f"Missing bind parameters [{','.join(self.names)}]"
        super().__init__(msg)


class InvalidRuleException(DbResourceError, ValueError):
    """Raised when a rule tree or rule definition is malformed."""

    pass
