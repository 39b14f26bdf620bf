"""
Process supervision for the provenanced node

The node is identified by scanning the live process table for the binary
name and a matching --home argument. A pid recorded in the lock file is
never trusted on its own since pids are recycled.
"""

import asyncio
import logging
import os
import signal
import subprocess
from pathlib import Path
from typing import List, Optional

import psutil

from .errors import NotRunning, ProcessTimeout, StartFailed, StopFailed

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.25
DEFAULT_READY_TIMEOUT = 10.0
DEFAULT_EXIT_TIMEOUT = 10.0


def _normalize(path) -> str:
    return os.path.normcase(os.path.realpath(os.path.abspath(str(path))))


def home_from_cmdline(cmdline: List[str]) -> Optional[str]:
    """Value of the last --home argument, in either '--home x' or '--home=x' form"""
    home = None
    for idx, arg in enumerate(cmdline):
        lowered = arg.lower()
        if lowered == "--home" and idx + 1 < len(cmdline):
            home = cmdline[idx + 1]
        elif lowered.startswith("--home="):
            home = arg.split("=", 1)[1]
    return home


class ProcessSupervisor:
    """Find, start, signal and wait for the node process"""

    def __init__(self, binary_name: str = "provenanced"):
        self.binary_name = binary_name

    def _is_candidate(self, name: Optional[str], cmdline: List[str]) -> bool:
        if name == self.binary_name:
            return True
        return bool(cmdline) and Path(cmdline[0]).name == self.binary_name

    def find_managed_pid(self, home_directory) -> Optional[int]:
        """Pid of the live node started with --home equal to home_directory"""
        target = _normalize(home_directory)
        for proc in psutil.process_iter(["pid", "name", "cmdline"]):
            try:
                name = proc.info.get("name")
                cmdline = proc.info.get("cmdline") or []
                if not self._is_candidate(name, cmdline):
                    continue
                home = home_from_cmdline(cmdline)
                if home is not None and _normalize(home) == target:
                    return proc.info["pid"]
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
        return None

    def start_background(self, command: List[str], log_file=None) -> subprocess.Popen:
        """Launch detached from the caller so the node outlives it"""
        logger.info(f"Command: {' '.join(command)}")
        try:
            if log_file is not None:
                with open(log_file, 'ab') as out:
                    return subprocess.Popen(
                        command,
                        stdin=subprocess.DEVNULL,
                        stdout=out,
                        stderr=subprocess.STDOUT,
                        start_new_session=True,
                    )
            return subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            raise StartFailed(f"Failed to start node process: {e}")

    async def start_foreground(self, command: List[str]) -> int:
        """Run attached to the terminal and return the exit status"""
        logger.info(f"Command: {' '.join(command)}")
        try:
            proc = await asyncio.create_subprocess_exec(*command)
        except OSError as e:
            raise StartFailed(f"Failed to start node process: {e}")
        return await proc.wait()

    async def start(self, command: List[str], background: bool, log_file=None) -> Optional[int]:
        """
        Start the node. Background starts return None immediately, foreground
        starts block until the node exits and return its exit status.
        """
        if background:
            self.start_background(command, log_file)
            return None
        return await self.start_foreground(command)

    async def await_ready(self, port: int, timeout: float = DEFAULT_READY_TIMEOUT,
                          host: str = "localhost") -> bool:
        """Poll until something accepts TCP connections on host:port"""

        async def poll():
            while True:
                try:
                    _, writer = await asyncio.open_connection(host, port)
                except OSError:
                    await asyncio.sleep(POLL_INTERVAL)
                    continue
                writer.close()
                try:
                    await writer.wait_closed()
                except OSError:
                    pass
                return

        try:
            await asyncio.wait_for(poll(), timeout)
        except asyncio.TimeoutError:
            logger.error(f"  ✗ Port {host}:{port} did not open within {timeout}s")
            return False
        logger.info(f"  ✓ Port {host}:{port} is accepting connections")
        return True

    def stop(self, pid: int, kill_tree: bool = True, sig: int = signal.SIGTERM):
        """Signal pid and, with kill_tree, every descendant of it"""
        children = []
        if kill_tree:
            try:
                children = psutil.Process(pid).children(recursive=True)
            except psutil.NoSuchProcess:
                raise NotRunning(f"Process {pid} is not running")
            except psutil.AccessDenied as e:
                logger.debug(f"Could not list children of {pid}: {e}")

        try:
            os.kill(pid, sig)
        except ProcessLookupError:
            raise NotRunning(f"Process {pid} is not running")
        except PermissionError as e:
            raise StopFailed(f"Not permitted to signal process {pid}: {e}")

        for child in children:
            try:
                child.send_signal(sig)
            except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
                logger.debug(f"Ignoring failure to signal child {child.pid}: {e}")

    @staticmethod
    def is_alive(pid: int) -> bool:
        try:
            return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
        except psutil.NoSuchProcess:
            return False
        except psutil.AccessDenied:
            return True

    async def await_exit(self, pid: int, timeout: float = DEFAULT_EXIT_TIMEOUT):
        """Poll until pid leaves the process table; ProcessTimeout after timeout seconds"""

        async def poll():
            while self.is_alive(pid):
                await asyncio.sleep(POLL_INTERVAL)

        try:
            await asyncio.wait_for(poll(), timeout)
        except asyncio.TimeoutError:
            raise ProcessTimeout(f"Timeout waiting for process '{pid}' to terminate")
