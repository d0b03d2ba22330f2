#!/usr/bin/env python
"""Script to generate an ADMIN_PASSWORD_HASH value.

Prompts for the admin password (or reads it from --password) and prints a
salted PBKDF2 hash that can be placed in the environment instead of the
plaintext ADMIN_PASSWORD.

Usage:
    python scripts/hash_admin_password.py
    python scripts/hash_admin_password.py --iterations 600000
"""

import argparse
import getpass
import logging
import sys
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from storefront.services.auth_service import HASH_ITERATIONS, hash_password, verify_password

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point for the hashing script."""
    parser = argparse.ArgumentParser(description="Hash the admin password for ADMIN_PASSWORD_HASH")
    parser.add_argument("--password", help="Password to hash (prompted when omitted)")
    parser.add_argument("--iterations", type=int, default=HASH_ITERATIONS, help="PBKDF2 iterations")
    args = parser.parse_args()

    password = args.password
    if password is None:
        password = getpass.getpass("Admin password: ")
        if password != getpass.getpass("Confirm password: "):
            logger.error("Passwords do not match")
            sys.exit(1)

    if not password:
        logger.error("Password must not be empty")
        sys.exit(1)

    encoded = hash_password(password, iterations=args.iterations)
    if not verify_password(password, encoded):
        logger.error("Generated hash failed verification")
        sys.exit(1)

    print(f"ADMIN_PASSWORD_HASH={encoded}")


if __name__ == "__main__":
    main()
