"""Windows registry setting backend.

Keys are written as ``<registry key>/<value name>``, for example
``HKCU\\Software\\Microsoft\\Windows\\CurrentVersion\\Explorer\\Advanced/HideFileExt``.
"""

from provctl.core.errors import InspectionError
from provctl.settings.base import SettingBackend, normalize_value

# reg.exe value types per value type
_REG_TYPES = {
    "string": "REG_SZ",
    "bool": "REG_DWORD",
    "int": "REG_DWORD",
    "float": "REG_SZ",
}


def split_registry_key(key: str) -> tuple[str, str]:
    """Split ``<registry key>/<value name>`` into its parts.

    Raises:
        ValueError: If either part is empty.
    """
    path, _, name = key.rpartition("/")
    if not path or not name:
        msg = f"registry key must be '<key>/<value name>', got: {key!r}"
        raise ValueError(msg)
    return path, name


def parse_reg_query(output: str, name: str) -> str | None:
    """Extract a value from ``reg query /v`` output.

    Value lines look like ``    HideFileExt    REG_DWORD    0x0``.
    DWORD values are converted to decimal.
    """
    for line in output.splitlines():
        parts = line.split(None, 2)
        if len(parts) < 2 or parts[0].lower() != name.lower() or not parts[1].startswith("REG_"):
            continue
        data = parts[2].strip() if len(parts) == 3 else ""
        if parts[1] in ("REG_DWORD", "REG_QWORD"):
            try:
                return str(int(data, 0))
            except ValueError:
                return data
        return data
    return None


class RegistryBackend(SettingBackend):
    """Backend for ``reg query`` / ``reg add``. Registry values have no backing file."""

    @property
    def name(self) -> str:
        return "reg"

    @property
    def executable(self) -> str:
        return "reg"

    def read(self, key: str) -> str | None:
        path, name = split_registry_key(key)
        result = self._run_read(["reg", "query", path, "/v", name])

        if not result.success:
            if "unable to find" in result.output.lower():
                return None
            msg = f"reg query failed: {result.output or 'unknown error'}"
            raise InspectionError(msg)

        return parse_reg_query(result.stdout, name)

    def build_write_command(self, key: str, value: str, value_type: str) -> list[str]:
        path, name = split_registry_key(key)
        reg_type = _REG_TYPES.get(value_type, "REG_SZ")
        if value_type == "bool":
            data = "1" if normalize_value(value, "bool") == "true" else "0"
        elif value_type == "int":
            data = normalize_value(value, "int")
        else:
            data = value
        return ["reg", "add", path, "/v", name, "/t", reg_type, "/d", data, "/f"]
