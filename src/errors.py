"""Exceptions raised by netblock."""


class NetBlockError(Exception):
    """Base netblock exception"""


class EmptyInputError(NetBlockError, ValueError):
    """Program reference was blank"""


class NoExecutablesFoundError(NetBlockError, ValueError):
    """Directory contained no executables or libraries"""

    def __init__(self, directory: str):
        self.directory = directory
        super().__init__(f"No executables found in directory: {directory}")


class NotFoundError(NetBlockError, ValueError):
    """Program could not be found on PATH or by name search"""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(
            f"Could not find a program matching '{reference}'.\n"
            f"Tip: provide the full path to the executable or its directory."
        )


class BackendError(NetBlockError, RuntimeError):
    """Firewall backend failed or returned an unexpected result"""

    def __init__(self, message: str, output: str = ""):
        self.output = output
        if output:
            message = f"{message}: {output.strip()}"
        super().__init__(message)


class InvalidModeError(NetBlockError, ValueError):
    """Requested operation is not one of allow, block or status"""

    def __init__(self, mode):
        self.mode = mode
        super().__init__(f"Invalid mode: {mode}")
