class HostsSyncError(Exception):
    """Base class for every failure a sync run can report."""

    def __init__(self, subject, cause=None):
        self.subject = str(subject)
        self.cause = cause
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return f"'{self.subject}': {self.cause}"


#####################################################################################
#                              Source file                                          #
#####################################################################################
class SourceNotFound(HostsSyncError):
    @property
    def message(self) -> str:
        return f"'{self.subject}': No such file or directory. Please ensure '{self.subject}' exists"


class SourceOpenError(HostsSyncError):
    pass


#####################################################################################
#                              Tailscale                                            #
#####################################################################################
class ToolNotFound(HostsSyncError):
    @property
    def message(self) -> str:
        return f"'{self.subject}': Tailscale binary not found"


class ToolUnhealthy(HostsSyncError):
    @property
    def message(self) -> str:
        if self.cause is None:
            return f"'{self.subject}': tailscale installed but not working"
        return f"'{self.subject}': tailscale installed but not working ({self.cause})"


class StatusCommandFailed(HostsSyncError):
    @property
    def message(self) -> str:
        if self.cause is None:
            return f"'{self.subject}': Failed to get Tailscale status"
        return f"'{self.subject}': {self.cause}"


class NoPeersFound(HostsSyncError):
    @property
    def message(self) -> str:
        return f"'{self.subject}': No Tailscale IP found"


#####################################################################################
#                              Materialize                                          #
#####################################################################################
class TempWriteNotFound(HostsSyncError):
    @property
    def message(self) -> str:
        return f"'{self.subject}' does not exist. Please ensure the file path is correct."


class TempWriteError(HostsSyncError):
    pass


class BackupFailed(HostsSyncError):
    pass


class InstallFailed(HostsSyncError):
    pass


class ConfigurationError(HostsSyncError):
    pass
