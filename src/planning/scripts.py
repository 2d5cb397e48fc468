"""Maintainer script templates.

The installed shell path (``<linkDir>/<name>``) is registered in /etc/shells
after install and removed again on uninstall. Each distro family keeps its
own idiom: RedHat edits the file directly, Ubuntu goes through add-shell.
"""

from __future__ import annotations

import textwrap
from typing import Optional, Tuple

_REDHAT_AFTER_INSTALL = textwrap.dedent("""\
    #!/bin/sh
    if [ ! -f /etc/shells ] ; then
        echo "{shell}" > /etc/shells
    else
        grep -q "^{shell}$" /etc/shells || echo "{shell}" >> /etc/shells
    fi
""")

_REDHAT_AFTER_REMOVE = textwrap.dedent("""\
    #!/bin/sh
    if [ "$1" = 0 ] ; then
        if [ -f /etc/shells ] ; then
            TmpFile=`/bin/mktemp /tmp/.powershellmXXXXXX`
            grep -v '^{shell}$' /etc/shells > $TmpFile
            cp -f $TmpFile /etc/shells
            rm -f $TmpFile
        fi
    fi
""")

_UBUNTU_AFTER_INSTALL = textwrap.dedent("""\
    #!/bin/sh
    set -e
    case "$1" in
        (configure)
            add-shell "{shell}"
        ;;
        (abort-upgrade|abort-remove|abort-deconfigure)
            exit 0
        ;;
        (*)
            echo "postinst called with unknown argument '$1'" >&2
            exit 0
        ;;
    esac
""")

_UBUNTU_AFTER_REMOVE = textwrap.dedent("""\
    #!/bin/sh
    set -e
    case "$1" in
        (remove)
            remove-shell "{shell}"
        ;;
    esac
""")

SCRIPT_TEMPLATES = {
    "redhat": (_REDHAT_AFTER_INSTALL, _REDHAT_AFTER_REMOVE),
    "ubuntu": (_UBUNTU_AFTER_INSTALL, _UBUNTU_AFTER_REMOVE),
}


def render_maintainer_scripts(distro_family: Optional[str], shell_path: str) -> Tuple[Optional[str], Optional[str]]:
    """Return (after_install, after_remove) script text, or (None, None)."""
    templates = SCRIPT_TEMPLATES.get(distro_family or "")
    if templates is None:
        return None, None
    after_install, after_remove = templates
    return after_install.format(shell=shell_path), after_remove.format(shell=shell_path)
