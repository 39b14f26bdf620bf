"""Exception types raised by the local network manager"""


class LocalnetError(Exception):
    """Base class for all local network failures"""


class ConfigError(LocalnetError):
    """Bad or conflicting configuration"""


class NameRestrictionConflict(ConfigError):

    def __init__(self, name: str, restrict: bool):
        self.name = name
        self.restrict = restrict
        existing = "restricted" if restrict else "unrestricted"
        requested = "unrestricted" if restrict else "restricted"
        super().__init__(
            f"Root name '{name}' is already configured as {existing} "
            f"and cannot also be {requested}"
        )


class InvalidNumber(ConfigError):

    def __init__(self, field: str, value):
        self.field = field
        self.value = value
        super().__init__(f"Invalid integer for '{field}': {value!r}")


class ZeroAccounts(ConfigError):

    def __init__(self):
        super().__init__("At least one account is required")


class AlreadyRunning(LocalnetError):
    pass


class NotRunning(LocalnetError):
    pass


class ResetWhileRunning(LocalnetError):
    pass


class ConfigMismatch(LocalnetError):
    pass


class LockFileCorrupt(LocalnetError):

    def __init__(self, file_name, reason):
        self.file_name = file_name
        super().__init__(
            f"Unable to read lock file '{file_name}': {reason}\n"
            "Reset the blockchain data with 'reset' first."
        )


class StartFailed(LocalnetError):
    pass


class StopFailed(LocalnetError):
    pass


class ProcessTimeout(LocalnetError, TimeoutError):
    pass


class KeyDerivationError(LocalnetError):
    pass


class InvalidKeyIndex(KeyDerivationError):

    def __init__(self, kind: str, value):
        self.kind = kind
        self.value = value
        super().__init__(f"{kind} {value!r} is not a non-negative integer")


class InvalidMnemonic(KeyDerivationError):

    def __init__(self):
        super().__init__("Mnemonic phrase is not a valid BIP39 mnemonic")


class ProvisioningError(LocalnetError):
    """A provenanced command exited with a non-zero status"""

    def __init__(self, command, returncode: int, stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed ({returncode}): {' '.join(self.command)}"
        if stderr:
            message += f"\n{stderr.strip()}"
        message += "\nThe home directory may be partially initialized; run 'reset' before retrying"
        super().__init__(message)
