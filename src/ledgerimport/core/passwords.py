"""
Password configuration for encrypted statements.

Reads a passwords.json of the form:

    {
        "files": {"statement_2024.xlsx": "secret"},
        "patterns": {"KB": "kb_pwd", "*.pdf": "pdf_pwd", "*": "fallback"}
    }
"""

import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class PasswordStore:
    """Looks up known passwords for statement files by name."""

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize password store.

        Args:
            config_file: Path to passwords.json (missing file means no passwords)
        """
        self.config_file = Path(config_file) if config_file else None

    def _load(self) -> dict:
        if self.config_file is None or not self.config_file.exists():
            return {}
        try:
            with open(self.config_file, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to read password config: {e}")
            return {}

    def get_password(self, filename: str) -> Optional[str]:
        """
        Get password for an encrypted file.

        Priority order:
        1. Exact filename match in "files"
        2. Pattern match in "patterns" ("*.ext" suffix or substring)
        3. "*" wildcard pattern
        4. None

        Args:
            filename: File name (not the full path)

        Returns:
            Password string or None
        """
        data = self._load()
        if not data:
            return None

        files = data.get("files", {})
        if filename in files:
            return files[filename]

        patterns = data.get("patterns", {})
        for pattern, pwd in patterns.items():
            if pattern == "*":
                continue
            elif pattern.startswith("*."):
                if filename.lower().endswith(pattern[1:].lower()):
                    return pwd
            elif pattern in filename:
                return pwd

        return patterns.get("*")
