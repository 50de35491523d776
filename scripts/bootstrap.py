#!/usr/bin/env python3
"""Bootstrap script for Showroom."""

import shutil
import subprocess
import sys
from pathlib import Path


def main():
    """Run setup tasks."""
    print("=" * 80)
    print("Showroom - Setup")
    print("=" * 80)

    if sys.version_info < (3, 11):
        print("Error: Python 3.11 or higher is required")
        sys.exit(1)

    print("\n✓ Python version check passed")

    print("\n Creating directories...")
    for dir_path in ["data/db", "data/logs", "data/session"]:
        Path(dir_path).mkdir(parents=True, exist_ok=True)
        print(f"  ✓ Created {dir_path}")

    print("\n📦 Installing dependencies...")
    try:
        subprocess.run(
            [sys.executable, "-m", "pip", "install", "-e", ".[test]"],
            check=True,
        )
        print("  ✓ Dependencies installed")
    except subprocess.CalledProcessError:
        print("  ✗ Failed to install dependencies")
        sys.exit(1)

    env_file = Path(".env")
    if not env_file.exists():
        print("\n⚠ No .env file found. Creating from .env.example...")
        if Path(".env.example").exists():
            shutil.copy(".env.example", env_file)
            print("  ✓ Created .env file - set SHOWROOM_IDENTITY_URL before using the admin console")
        else:
            print("  ✗ .env.example not found")
    else:
        print("\n✓ .env file exists")

    print("\n🗄 Initializing database...")
    try:
        # Import here to ensure dependencies are installed
        from showroom.storage.database import Database
        from showroom.utils.config import get_config

        Database(get_config().database.url)
        print("  ✓ Database initialized")
    except Exception as e:
        print(f"  ✗ Failed to initialize database: {e}")
        sys.exit(1)

    print("\n" + "=" * 80)
    print("✅ Setup completed successfully!")
    print("=" * 80)
    print("\nNext steps:")
    print("1. Edit .env with your identity service URL")
    print("2. Run 'python -m showroom seed' to load the sample catalog")
    print("3. Run 'python -m showroom api' to start the API server")


if __name__ == "__main__":
    main()
