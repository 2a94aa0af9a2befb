"""Command construction for the ssh, tar, zstd and pv stages.

Every method returns a fresh argv list and never touches the system.
Commands that run on the remote host are passed to ssh as one string
built with shlex.join, so each token is quoted on its own and the remote
shell splits it back into the original argv.
"""

import shlex
from typing import Optional

from ..config.schema import Config


class CommandBuilder:
    """Build argument vectors for one configuration."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.tools = config.tools

    @staticmethod
    def sudo_tokens(sudo: str) -> list[str]:
        """Split a sudo command string such as 'sudo -n'; '' gives no prefix."""
        return shlex.split(sudo) if sudo and sudo.strip() else []

    @staticmethod
    def remote_string(remote_argv: list[str]) -> str:
        """Single command line for the remote shell."""
        return shlex.join(remote_argv)

    def tar_feature_flags(self) -> list[str]:
        """--acls/--xattrs flags when preservation is enabled."""
        flags = []
        if self.config.keep_acls:
            flags.append("--acls")
        if self.config.keep_xattrs:
            flags.append("--xattrs")
        return flags

    def ssh_base_command(self) -> list[str]:
        """ssh with transport options, up to and including the host."""
        ssh = self.config.ssh
        cmd = [self.tools.ssh]
        if ssh.port:
            cmd.extend(["-p", str(ssh.port)])
        if ssh.identity:
            cmd.extend(["-i", str(ssh.identity)])

        opts = [
            "BatchMode=yes",
            "StrictHostKeyChecking=accept-new",
            f"ServerAliveInterval={ssh.keepalive_interval}",
            f"ServerAliveCountMax={ssh.keepalive_count}",
        ]
        for opt in opts:
            cmd.extend(["-o", opt])

        cmd.append(str(ssh.host))
        return cmd

    def ssh_command(self, remote_argv: list[str]) -> list[str]:
        """Run remote_argv on the remote host."""
        return self.ssh_base_command() + [self.remote_string(remote_argv)]

    def probe_command(self) -> list[str]:
        """Check that the archiver is reachable on the remote host."""
        snippet = f"command -v {shlex.quote(self.tools.tar)} >/dev/null"
        return self.ssh_base_command() + [snippet]

    def remote_archive_command(self) -> list[str]:
        """tar invocation streaming the source paths to stdout, remote side."""
        cmd = self.sudo_tokens(self.config.sudo_remote)
        cmd += [self.tools.tar, "-C", "/", "-cpf", "-"]
        cmd += self.tar_feature_flags()
        cmd += [f"--exclude={pattern}" for pattern in self.config.excludes]
        cmd += list(self.config.paths)
        return cmd

    def extract_command(self, target: str, sudo: str) -> list[str]:
        """tar invocation unpacking stdin into target."""
        cmd = self.sudo_tokens(sudo)
        cmd += [self.tools.tar, "-C", str(target), "-xpf", "-", "--numeric-owner"]
        cmd += self.tar_feature_flags()
        return cmd

    def remote_extract_command(self) -> list[str]:
        """Remote tar extraction under the restore prefix (remote argv)."""
        return self.extract_command(self.config.restore_prefix, self.config.sudo_remote)

    def local_extract_command(self) -> list[str]:
        """Local tar extraction into the output directory."""
        return self.extract_command(self.config.out_dir, self.config.sudo_local)

    def remote_mkdir_command(self) -> list[str]:
        """Create the restore prefix on the remote host (remote argv)."""
        cmd = self.sudo_tokens(self.config.sudo_remote)
        cmd += ["mkdir", "-p", "--", self.config.restore_prefix]
        return cmd

    def compress_command(self) -> list[str]:
        level = self.config.zstd_level
        cmd = [self.tools.zstd, f"-T{self.config.zstd_threads}"]
        # zstd refuses levels above 19 without --ultra
        if level > 19:
            cmd.append("--ultra")
        cmd += [f"-{level}", "-c"]
        return cmd

    def decompress_command(self) -> list[str]:
        return [self.tools.zstd, "-dc"]

    def verify_command(self, path: str) -> list[str]:
        """Integrity test of a written archive."""
        return [self.tools.zstd, "-tq", str(path)]

    def list_command(self) -> list[str]:
        return [self.tools.tar, "-tf", "-"]

    def progress_command(
        self, path: Optional[str] = None, size: Optional[int] = None
    ) -> list[str]:
        """pv, reading path itself when given so it knows the total size."""
        cmd = [self.tools.pv]
        if size is not None:
            cmd += ["-s", str(size)]
        if path is not None:
            cmd.append(str(path))
        return cmd
