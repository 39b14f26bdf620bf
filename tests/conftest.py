"""Shared fakes for node manager tests"""

import pytest

from pio_localnet.node_manager import LocalnetManager
from pio_localnet.errors import ProvisioningError
from pio_localnet.provenanced import Provenanced

TEST_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)


class RecordingProvenanced(Provenanced):
    """Records provenanced invocations instead of running them"""

    def __init__(self, home, fail_on=None):
        super().__init__("provenanced", home)
        self.calls = []
        self.inputs = []
        self.fail_on = fail_on

    def run(self, *args, input_text=None):
        cmd = self.base_command() + list(args)
        if self.fail_on is not None and args[0] == self.fail_on:
            raise ProvisioningError(cmd, 1, "boom")
        self.calls.append(list(args))
        self.inputs.append(input_text)


class FakeSupervisor:
    """Process supervisor with a scripted process table"""

    def __init__(self):
        self.live_pid = None
        self.pid_after_start = 4242
        self.ready = True
        self.exit_code = 0
        self.started = []
        self.stopped = []
        self.ready_checks = []

    def find_managed_pid(self, home_directory):
        return self.live_pid

    async def start(self, command, background, log_file=None):
        self.started.append((command, background))
        if background:
            self.live_pid = self.pid_after_start
            return None
        return self.exit_code

    async def await_ready(self, port, timeout=10.0, host="localhost"):
        self.ready_checks.append((host, port))
        return self.ready

    def stop(self, pid, kill_tree=True, sig=None):
        self.stopped.append(pid)
        self.live_pid = None

    async def await_exit(self, pid, timeout=10.0):
        return None


@pytest.fixture
def home(tmp_path):
    return tmp_path / "home"


@pytest.fixture
def supervisor():
    return FakeSupervisor()


@pytest.fixture
def provenanced(home):
    return RecordingProvenanced(home)


@pytest.fixture
def manager(home, provenanced, supervisor):
    return LocalnetManager(home=home, provenanced=provenanced, supervisor=supervisor)
