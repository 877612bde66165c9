from typing import List, NamedTuple
import asyncio
from contextlib import suppress
from vidvault.config.settings import YtDlpConfig

class CompletedProcess(NamedTuple):
    """Subprocess result"""
    returncode: int
    stdout: bytes
    stderr: bytes

class SubprocessExecutor:
    """Execute subprocess with consistent error handling"""

    @staticmethod
    async def run(
        cmd: List[str],
        timeout: float,
        capture_stderr: bool = True
    ) -> CompletedProcess:
        """
        Run subprocess with timeout and proper cleanup.
        The child is killed on timeout and on cancellation of the awaiting task,
        so no extractor process outlives its request.
        """
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE if capture_stderr else asyncio.subprocess.DEVNULL,
            stdin=asyncio.subprocess.DEVNULL
        )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout
            )

            return CompletedProcess(
                returncode=process.returncode,
                stdout=stdout,
                stderr=stderr if capture_stderr else b""
            )

        except BaseException:
            if process.returncode is None:
                with suppress(ProcessLookupError):
                    process.kill()
                await asyncio.shield(process.wait())
            raise

class YTDLPCommandBuilder:
    """Build yt-dlp commands"""

    def __init__(self, ytdlp_config: YtDlpConfig):
        self.config = ytdlp_config

    def _common_options(self) -> List[str]:
        cmd = [
            '--no-playlist',
            '--socket-timeout', str(self.config.socket_timeout),
            '--retries', str(self.config.retries),
        ]

        if not self.config.enable_live_streams:
            cmd.extend(['--match-filter', '!is_live'])

        if self.config.js_runtime:
            cmd.extend(['--js-runtimes', self.config.js_runtime])

        return cmd

    def build_version_command(self) -> List[str]:
        return [self.config.binary, '--version']

    def build_info_command(self, url: str) -> List[str]:
        """Build command for fetching video info"""
        cmd = [self.config.binary, '--dump-json']
        cmd.extend(self._common_options())
        # "--" keeps a URL starting with "-" from being parsed as an option
        cmd.extend(['--', url])
        return cmd

    def build_download_command(
        self,
        url: str,
        format_str: str,
        output_template: str,
        merge_format: str
    ) -> List[str]:
        """Build command for downloading to a file"""
        cmd = [
            self.config.binary,
            '-f', format_str,
            '-o', output_template,
            '--merge-output-format', merge_format,
            '--no-part',
            '--no-mtime',
            '--no-progress',
            '--quiet',
        ]
        cmd.extend(self._common_options())
        cmd.extend(['--', url])
        return cmd
