import os
import re
from pathlib import Path

REQUIRED = ["N8N_URL", "N8N_API_KEY", "N8N_WORKFLOW_ID", "DATABASE_URL", "SUPABASE_URL", "SUPABASE_ANON_KEY"]


def find_env_vars():
    """Find all environment variables referenced in code."""
    env_vars = set()
    for py_file in Path("app").rglob("*.py"):
        content = py_file.read_text(encoding="utf-8", errors="ignore")
        env_vars.update(re.findall(r'alias=["\']([A-Z0-9_]+)["\']', content))
        env_vars.update(re.findall(r'os\.getenv\(["\']([A-Z0-9_]+)["\']', content))
    return sorted(env_vars)


def verify_environment():
    code_vars = find_env_vars()
    missing_required = [v for v in REQUIRED if not os.getenv(v)]
    unset_optional = [v for v in code_vars if v not in REQUIRED and not os.getenv(v)]

    print("=== ENV VAR VERIFICATION ===")
    print(f"Code references: {len(code_vars)} unique vars")
    print("")
    if missing_required:
        print(f"MISSING REQUIRED ({len(missing_required)}):")
        for v in missing_required:
            print(f"  - {v}")
    else:
        print("All required vars are set.")
    print("")
    if unset_optional:
        print(f"USING DEFAULTS ({len(unset_optional)}):")
        for v in unset_optional:
            print(f"  - {v}")
    return not missing_required


if __name__ == "__main__":
    raise SystemExit(0 if verify_environment() else 1)
