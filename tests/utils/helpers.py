"""
Test Helpers
============

Stand-in renderer executables and process helpers.

The stand-ins are small shell scripts accepting the same ``[flags] - -``
command line as wkhtmltoimage.
"""

import os
import stat
from pathlib import Path


# Writes the HTML read from stdin back as the "image"
ECHO_RENDERER = """#!/bin/sh
cat
"""

# Prints each argument on its own line, then discards stdin
ARGS_RENDERER = """#!/bin/sh
for arg in "$@"; do
    printf '%s\\n' "$arg"
done
cat > /dev/null
"""

FAILING_RENDERER = """#!/bin/sh
cat > /dev/null
echo "Error: Failed loading page" >&2
exit 1
"""

SILENT_FAILING_RENDERER = """#!/bin/sh
exit 2
"""


def hanging_renderer(pid_file: Path) -> str:
    """Renderer that records its PID and never finishes."""
    return f"""#!/bin/sh
echo $$ > "{pid_file}"
exec sleep 30
"""


def write_renderer(directory: Path, name: str, script: str) -> Path:
    """Write an executable renderer script and return its path."""
    path = directory / name
    path.write_text(script)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def is_process_running(pid: int) -> bool:
    """Whether a process with ``pid`` still exists."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def read_pid(pid_file: Path) -> int:
    return int(pid_file.read_text().strip())
