"""远程命令（ssh）健康检查器"""

import asyncio
import time
from typing import Optional, Any, List

from .base import BaseHealthChecker
from .factory import register_checker
from ..models.health_check import HealthCheckResult


@register_checker('ssh')
class SshHealthChecker(BaseHealthChecker):
    """通过ssh在远程主机执行命令，退出码为0视为健康"""

    def validate_config(self) -> bool:
        for field in ('hostname', 'command'):
            value = self.config.get(field)
            if not isinstance(value, str) or not value:
                return False

        user = self.config.get('user')
        if user is not None and not isinstance(user, str):
            return False

        return True

    def display_name(self) -> str:
        return f"ssh {self.config.get('hostname')}: '{self.config.get('command')}'"

    def build_command(self) -> List[str]:
        """构造ssh命令行"""
        args = ['ssh', self.config['hostname']]
        user = self.config.get('user')
        if user:
            args.append(f"-l{user}")
        args.append(self.config['command'])
        return args

    @staticmethod
    def _format_output(stdout: bytes, stderr: bytes) -> str:
        return (
            "Stdout:\n" + stdout.decode('utf-8', errors='replace')
            + "Stderr:\n" + stderr.decode('utf-8', errors='replace')
        )

    async def check_health(self, updates: Optional[Any] = None) -> HealthCheckResult:
        """
        执行远程命令检查，任务被取消时终止ssh子进程

        Returns:
            HealthCheckResult: 健康检查结果
        """
        start_time = time.time()

        try:
            process = await asyncio.create_subprocess_exec(
                *self.build_command(),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            return self._result(False, time.time() - start_time, f"无法启动ssh命令: {e}")

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        response_time = time.time() - start_time
        output = self._format_output(stdout, stderr)

        if process.returncode > 0:
            return self._result(False, response_time,
                                f"命令返回退出码 {process.returncode}\n{output}",
                                exit_code=process.returncode)
        if process.returncode < 0:
            # 被信号终止，没有退出码
            return self._result(False, response_time, f"命令返回退出码 none\n{output}",
                                signal=-process.returncode)

        self._note(updates, output)
        return self._result(True, response_time, exit_code=0)
