#!/usr/bin/env python3
"""Helper script to check and create .env file for Supabase and Kakao configuration."""

from pathlib import Path
import os
import sys

ENV_TEMPLATE = """# Supabase Configuration (Required for database storage)
# Get these from: https://supabase.com/dashboard → Your Project → Settings → API
EDU_SUPABASE_URL=https://your-project-id.supabase.co
EDU_SUPABASE_KEY=your-service-role-key-here

# Kakao Static Map (Optional - without it every daily travel stays DRAFT)
EDU_KAKAO_API_KEY=

# API Configuration
EDU_API_PREFIX=/api
# EDU_FRONTEND_ALLOWED_ORIGINS - JSON array or comma-separated list

# Local storage for map snapshots
EDU_DATA_ROOT=./data
EDU_STORAGE_BASE_URL=/files
"""

SECRET_KEYS = ("EDU_SUPABASE_KEY", "EDU_KAKAO_API_KEY")


def _mask(line: str) -> str:
    name, _, value = line.partition("=")
    value = value.strip()
    if name.strip() in SECRET_KEYS and len(value) > 20:
        return f"{name}={value[:20]}...{value[-10:]}"
    return line


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Environment Variables Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"❌ .env file NOT found at: {env_file}")
        print("Creating template .env file...")
        env_file.write_text(ENV_TEMPLATE, encoding="utf-8")
        print(f"✅ Created .env file at: {env_file}")
        print("⚠️  Please edit .env and add your Supabase credentials!")
        return

    print(f"✅ Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(_mask(line))
    print("-" * 60)
    print()

    for key in ("EDU_SUPABASE_URL", "EDU_SUPABASE_KEY", "EDU_KAKAO_API_KEY"):
        if os.getenv(key):
            print(f"✅ {key} set in environment")
        else:
            print(f"❌ {key} not found in environment")
    print()

    try:
        sys.path.insert(0, str(project_root / "src"))
        from eduadmin.config import settings
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return

    if settings.supabase_url and settings.supabase_key:
        print("✅ SUCCESS: Supabase is configured!")
    else:
        print("❌ ERROR: Supabase is NOT configured - records will be kept in memory only")
        print("   Make sure variables start with the EDU_ prefix and restart the backend after editing .env")
    if settings.kakao_api_key:
        print("✅ Kakao static map key is configured")
    else:
        print("⚠️  Kakao static map key missing - map snapshots are disabled")


if __name__ == "__main__":
    main()
