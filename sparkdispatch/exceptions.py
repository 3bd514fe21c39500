"""Package specific exception module."""


class SubmitArgsError(ValueError):
    """General exception raised when submit arguments cannot be turned into a payload."""

    pass


class TokenizeError(SubmitArgsError):
    """The raw argument string cannot be split into tokens."""

    def __init__(self, reason: str, raw_args: str = ""):
        super().__init__(reason)
        self.reason = reason
        self.raw_args = raw_args

    def __str__(self) -> str:
        """Str representation."""
        if self.raw_args:
            return f"Could not tokenize submit arguments '{self.raw_args}': {self.reason}"
        return f"Could not tokenize submit arguments: {self.reason}"


class MalformedConfigError(SubmitArgsError):
    """A --conf value is not in the key=value form."""

    def __init__(self, value: str):
        super().__init__(value)
        self.value = value

    def __str__(self) -> str:
        """Str representation."""
        return f"Malformed --conf value '{self.value}', expected key=value."


class MissingResourceError(SubmitArgsError):
    """No application resource (jar or script) was found in the submit arguments."""

    def __str__(self) -> str:
        """Str representation."""
        return "Submit arguments must include an application resource (jar or script URL)."


class UnknownFlagError(SubmitArgsError):
    """An unrecognized submit flag was provided while parsing strictly."""

    def __init__(self, flag: str):
        super().__init__(flag)
        self.flag = flag

    def __str__(self) -> str:
        """Str representation."""
        return f"Unknown submit flag {self.flag}."
