# src/projctx/core_tools/processes.py
"""
List and stop processes listening on local TCP ports.

Unix uses `lsof`, Windows uses `netstat -ano` / `taskkill`. These helpers
hold no state; failures (missing binary, permission denied) are returned as
a message rather than raised.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from typing import Dict, List, Optional

from projctx.errors import InvalidArgumentError
from projctx.store.schema import coerce_int

logger = logging.getLogger(__name__)

LSOF_LISTEN_CMD = ["lsof", "-iTCP", "-sTCP:LISTEN", "-n", "-P"]
NETSTAT_CMD = ["netstat", "-ano"]


class CommandError(RuntimeError):
    pass


async def _run(cmd: List[str]) -> str:
    """
    Run a command and return stdout. A non-zero exit with empty stdout and a
    non-empty stderr counts as failure; lsof exits 1 when nothing matches.
    """
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    out, err = await proc.communicate()
    stdout = out.decode(errors="replace")
    stderr = err.decode(errors="replace").strip()
    if proc.returncode != 0 and not stdout.strip() and stderr:
        raise CommandError(f"{cmd[0]} exited with {proc.returncode}: {stderr}")
    return stdout


def _is_windows(platform: Optional[str]) -> bool:
    return (platform or sys.platform) == "win32"


# ---------------------------------------------------------------------------
# parsing
# ---------------------------------------------------------------------------

def parse_lsof(stdout: str) -> Dict[str, List[str]]:
    """
    Map command name -> listening ports (first-seen order, no duplicates)
    from `lsof -iTCP -sTCP:LISTEN -n -P` output.
    """
    processes: Dict[str, List[str]] = {}
    for line in stdout.splitlines()[1:]:
        parts = line.split()
        if len(parts) < 9:
            continue
        name = parts[0]
        port = parts[8].rsplit(":", 1)[-1]
        ports = processes.setdefault(name, [])
        if port.isdigit() and port not in ports:
            ports.append(port)
    return processes


def parse_netstat_listening(stdout: str) -> List[str]:
    """Local ports of LISTENING sockets from `netstat -ano`, numerically sorted."""
    ports = set()
    for line in stdout.splitlines():
        parts = line.split()
        if len(parts) < 5 or parts[3] != "LISTENING":
            continue
        port = parts[1].rsplit(":", 1)[-1]
        if port.isdigit():
            ports.add(port)
    return sorted(ports, key=int)


def parse_netstat_pids(stdout: str, port: int) -> List[int]:
    """PIDs of LISTENING sockets whose local port is exactly `port`."""
    pids: List[int] = []
    for line in stdout.splitlines():
        parts = line.split()
        if len(parts) < 5 or parts[3] != "LISTENING":
            continue
        if parts[1].rsplit(":", 1)[-1] != str(port):
            continue
        if parts[-1].isdigit():
            pid = int(parts[-1])
            if pid and pid not in pids:
                pids.append(pid)
    return pids


# ---------------------------------------------------------------------------
# tools
# ---------------------------------------------------------------------------

async def list_processes(platform: Optional[str] = None) -> str:
    try:
        if _is_windows(platform):
            ports = parse_netstat_listening(await _run(NETSTAT_CMD))
            out = ["# Running Processes", ""]
            if ports:
                out.append("## Ports in use:")
                out.extend(f"- Port {p}" for p in ports)
            else:
                out.append("No processes found.")
            return "\n".join(out) + "\n"

        processes = parse_lsof(await _run(LSOF_LISTEN_CMD))
    except (OSError, CommandError) as exc:
        logger.warning("listing processes failed: %s", exc)
        return f"Error listing processes: {exc}"

    out = ["# Running Processes", ""]
    if not processes:
        out.append("No processes found.")
        return "\n".join(out) + "\n"
    out.append("## Processes by port:")
    for name, ports in processes.items():
        out.append("")
        out.append(f"### {name}")
        out.extend(f"- Port {p}" for p in ports)
    return "\n".join(out) + "\n"


async def kill_process(port: int, platform: Optional[str] = None) -> str:
    """Force-stop every process listening on `port`."""
    port = coerce_int(port, field="port")
    if not 0 < port < 65536:
        raise InvalidArgumentError(f"Invalid port: {port}")

    try:
        if _is_windows(platform):
            pids = parse_netstat_pids(await _run(NETSTAT_CMD + ["-p", "TCP"]), port)
            for pid in pids:
                await _run(["taskkill", "/F", "/PID", str(pid)])
        else:
            stdout = await _run(["lsof", "-ti", f"tcp:{port}", "-sTCP:LISTEN"])
            pids = [int(p) for p in stdout.split() if p.isdigit()]
            for pid in pids:
                os.kill(pid, signal.SIGKILL)
    except (OSError, CommandError) as exc:
        logger.warning("stopping process on port %d failed: %s", port, exc)
        return f"Error stopping process on port {port}: {exc}"

    if not pids:
        return f"No process found listening on port {port}."
    logger.info("stopped pid(s) %s on port %d", pids, port)
    return f"✓ Process(es) on port {port} stopped ({', '.join(str(p) for p in pids)})."
