# --- Standard library imports ---
import json
import socket
import platform
from typing import Callable, Sequence

# --- Project imports ---
from .config import Config
from .logger import get_logger
from .shell import run_command, run_powershell


# Define the logger once for the entire module
logger = get_logger("connectivity")

def has_default_route() -> bool:
    """
    Return True if the IPv4 routing table holds a default route.

    Raises on platform command failure; ConnectivityProbe
    treats that as "no route".
    """
    result = run_powershell(
        "Get-NetRoute -DestinationPrefix '0.0.0.0/0' -ErrorAction SilentlyContinue "
        "| Select-Object NextHop | ConvertTo-Json -Compress"
    )
    if not result.ok or not result.output:
        return False

    routes = json.loads(result.output)
    if isinstance(routes, dict):
        routes = [routes]
    return any(r.get("NextHop") for r in routes)

def icmp_echo(host: str, timeout: float = 2.0) -> bool:
    """
    Send a single ICMP echo request using the system `ping`.

    Returns:
        True if the host answered, False otherwise.
    """
    if platform.system() == "Windows":
        cmd = ["ping", "-n", "1", "-w", str(int(timeout * 1000)), host]
    else:
        cmd = ["ping", "-c", "1", "-W", str(max(1, int(timeout))), host]

    # Extra headroom over ping's own deadline
    return run_command(cmd, timeout=timeout + 5).ok

def tcp_reachable(host: str, port: int = 80, timeout: float = 2.0) -> bool:
    """
    Check host reachability with a TCP connection (Layer 4).

    Used where ICMP is filtered but outbound web traffic is not.
    """
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


class ConnectivityProbe:
    """
    Layered reachability test against a fixed, ordered host list.

    Policy (short-circuits on first success):
      1. No default route → unreachable, nothing probed
      2. One ICMP echo per host
      3. TCP connect to port 80 per host
      4. Otherwise unreachable
    """

    def __init__(
        self,
        hosts: Sequence[str] = Config.PROBE_HOSTS,
        route_check: Callable[[], bool] = has_default_route,
        icmp: Callable[[str, float], bool] = icmp_echo,
        tcp: Callable[[str, int, float], bool] = tcp_reachable,
        tcp_port: int = Config.PROBE_TCP_PORT,
    ):
        self.hosts = tuple(hosts)
        self.route_check = route_check
        self.icmp = icmp
        self.tcp = tcp
        self.tcp_port = tcp_port

    def _attempt(self, label: str, func, *args) -> bool:
        try:
            return bool(func(*args))
        except Exception as e:
            logger.debug(f"{label} probe fault ({e.__class__.__name__}: {e})")
            return False

    def check(self, timeout: float = Config.PROBE_TIMEOUT) -> bool:
        if not self._attempt("route", self.route_check):
            logger.warning("No default gateway present; skipping reachability probes")
            return False

        for host in self.hosts:
            if self._attempt(f"icmp {host}", self.icmp, host, timeout):
                logger.debug(f"ICMP reply from {host}")
                return True

        logger.debug("ICMP unanswered by all hosts; falling back to TCP")
        for host in self.hosts:
            if self._attempt(f"tcp {host}", self.tcp, host, self.tcp_port, timeout):
                logger.debug(f"TCP {host}:{self.tcp_port} reachable")
                return True

        return False
