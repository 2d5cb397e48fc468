"""Parser for fpm's final status line.

fpm reports the created package as a Ruby hash on its last line, e.g.::

    {:timestamp=>"...", :message=>"Created package", :path=>"powershell_6.0.0-1_amd64.deb"}

This is the only place that depends on that format.
"""

import os
import re
from typing import Optional

from errors import UnparseableToolOutput

_PATH_TOKEN = re.compile(r':?path=>"(?P<path>[^"]+)"')


def parse_created_package(output: str, base_dir: Optional[str] = None) -> str:
    """Return the artifact path named on the last non-empty output line.

    Relative paths are resolved against ``base_dir`` (fpm's working directory).

    Raises:
        UnparseableToolOutput: no ``path=>"..."`` token on the last line.
    """
    lines = [line for line in (output or "").splitlines() if line.strip()]
    if not lines:
        raise UnparseableToolOutput(output or "")
    matches = _PATH_TOKEN.findall(lines[-1])
    if not matches:
        raise UnparseableToolOutput(output)
    path = matches[-1]
    if base_dir and not os.path.isabs(path):
        path = os.path.join(base_dir, path)
    return path
