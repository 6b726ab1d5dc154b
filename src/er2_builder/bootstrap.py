# SPDX-License-Identifier: MIT
"""PHP bootstrap code generated into ER2 packages.

Three pieces of glue are produced from the templates in ``templates/``:

- ``runonce.php``: executes the numbered run-once scripts on module load,
  logging failures instead of aborting
- an extension of ``config/autoload.php`` that requires the Composer
  autoloader of the module's vendor directory
- an extension of ``config/config.php`` that, on Contao 2.x, wraps the
  legacy ``__autoload`` around the Composer autoloader and seeds the class
  file cache with every class of the classmap

Template variables use the ``{{variable_name}}`` syntax.
"""

from __future__ import annotations

import re
import uuid
from pathlib import Path
from typing import Iterable, Optional

from .errors import TemplateError

TEMPLATE_DIR = Path(__file__).parent / "templates"

# Pattern for matching template variables: {{variable_name}}
VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")

# Trailing PHP closing tag, stripped before appending code
CLOSING_TAG_PATTERN = re.compile(r"\?>\s*$")

PHP_FILE_HEADER = "<?php\n\n"

RUNONCE_CLASS_PREFIX = "runonce_"


def render_template(name: str, variables: dict[str, str]) -> str:
    """Render a template file from ``TEMPLATE_DIR``.

    Raises:
        TemplateError: If the template does not exist or uses an undefined variable
    """
    path = TEMPLATE_DIR / name
    if not path.is_file():
        raise TemplateError(f"Template not found: {name}")
    return substitute(path.read_text(encoding="utf-8"), variables)


def substitute(content: str, variables: dict[str, str]) -> str:
    """Substitute {{variable}} patterns in template content.

    Raises:
        TemplateError: If a variable in the content is not defined
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        if var_name not in variables:
            raise TemplateError(f"Undefined template variable: {var_name}")
        return variables[var_name]

    return VARIABLE_PATTERN.sub(replacer, content)


def php_string_literal(value: str) -> str:
    """Quote a string as a PHP single-quoted literal, like ``var_export``."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def php_path(value: str) -> str:
    """Escape a path for embedding inside a single-quoted PHP string."""
    return php_string_literal(value)[1:-1]


def strip_closing_tag(content: str) -> str:
    """Remove a trailing ``?>`` so code can be appended to a PHP file."""
    return CLOSING_TAG_PATTERN.sub("", content)


def generate_runonce_class_name(token: Optional[str] = None) -> str:
    """Return a class name that is unique per build.

    Contao loads run-once files of every installed module version into the
    same process, so each generated executor needs its own class name.
    """
    return RUNONCE_CLASS_PREFIX + (token or uuid.uuid4().hex)


def render_runonce_executor(class_name: str) -> str:
    return render_template("runonce.php", {"class_name": class_name})


def _extend(existing: Optional[str], snippet: str) -> str:
    if existing is None:
        content = PHP_FILE_HEADER
    else:
        content = strip_closing_tag(existing)
        if snippet.strip() in content:
            return content
    return content + snippet


def extend_autoload(existing: Optional[str], module_path: str) -> str:
    """Append the vendor autoloader include to an autoload.php.

    Args:
        existing: Current content of the file, or None to start a new one
        module_path: Module directory relative to the installation root

    Returns:
        The new file content; unchanged apart from a stripped closing tag
        when the include is already present
    """
    snippet = render_template("autoload.php", {"module_path": php_path(module_path)})
    return _extend(existing, snippet)


def extend_config(existing: Optional[str], module_path: str, class_names: Iterable[str]) -> str:
    """Append the Contao 2.x autoloader bridge to a config.php.

    Args:
        existing: Current content of the file, or None to start a new one
        module_path: Module directory relative to the installation root
        class_names: Classes to register in the class file cache, in order
    """
    classes = ",".join(php_string_literal(name) for name in class_names)
    snippet = render_template(
        "config.php",
        {"module_path": php_path(module_path), "classes": classes},
    )
    return _extend(existing, snippet)
