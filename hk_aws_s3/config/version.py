"""
Version information helper.
"""

from importlib import metadata


def get_version():
    # Try reading VERSION file first (works in Docker)
    try:
        with open('VERSION', 'r') as f:
            return f.read().strip()
    except FileNotFoundError:
        pass

    # Fall back to the installed distribution
    try:
        return metadata.version('hk-aws-s3')
    except metadata.PackageNotFoundError:
        pass

    return "unknown"
