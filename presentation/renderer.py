# presentation/renderer.py
import re
import sys


# --- Helper for colored output ---
class Colors:
    RESET = "\033[0m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"


LOG_LINES = 20


def get_visible_length(s: str) -> int:
    """Calculates the visible length of a string by removing ANSI escape codes."""
    return len(re.sub(r"\033\[[0-9;]*m", "", s))


def _colorize_log(line: str) -> str:
    if "gave up" in line or "dirty" in line or "crashed" in line:
        return f"{Colors.RED}{line}{Colors.RESET}"
    if "finished" in line:
        return f"{Colors.GREEN}{line}{Colors.RESET}"
    return line


def _usage_bar(in_use: int, capacity: int, width: int = 20) -> str:
    if capacity <= 0:
        return "[" + " " * width + "]"
    filled = round(width * in_use / capacity)
    return "[" + "#" * filled + "." * (width - filled) + "]"


def render(render_data: dict) -> list[str]:
    pool = render_data["pool"]
    status = f"{Colors.RED}CLOSED{Colors.RESET}" if pool["closed"] else f"{Colors.GREEN}OPEN{Colors.RESET}"
    header = f"--- Object Pool ({render_data['resource_kind']}) --- {status}"
    buffer = [
        header,
        "-" * get_visible_length(header),
        f"Capacity: {pool['capacity']} | Idle: {pool['idle']} | In use: {pool['in_use']} | Dropped: {pool['dropped']}",
        f"Usage: {_usage_bar(pool['in_use'], pool['capacity'])} peak {render_data['peak_in_use']}",
        f"Jobs: {render_data['completed_jobs']}/{render_data['expected_jobs']} "
        f"across {render_data['workers']} workers",
    ]

    timeouts = render_data["timeouts"]
    leaks = render_data["leaks"]
    color = Colors.YELLOW if timeouts else Colors.WHITE
    buffer.append(f"{color}Timeouts: {timeouts}{Colors.RESET}")
    color = Colors.RED if leaks else Colors.WHITE
    buffer.append(f"{color}Dirty hand-outs: {leaks}{Colors.RESET}")
    errors = render_data.get("errors", 0)
    if errors:
        buffer.append(f"{Colors.RED}Crashed workers: {errors}{Colors.RESET}")

    buffer.append("--- Log ---")
    buffer.extend(_colorize_log(line) for line in render_data["logs"][-LOG_LINES:])
    return buffer


def display(render_data: dict, stream=None):
    """Writes the report to `stream` (stdout by default) and returns its lines."""
    lines = render(render_data)
    out = stream or sys.stdout
    out.write("\n".join(lines) + "\n")
    out.flush()
    return lines
