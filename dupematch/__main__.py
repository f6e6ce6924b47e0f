"""
Allow running the package with: python -m dupematch

By default, starts the HTTP server. Use 'cli' subcommand to check files.

Examples:
    python -m dupematch                          # Start server
    python -m dupematch serve --port 9000        # Start server (explicit)
    python -m dupematch cli ./refs photo.jpg     # Check photo.jpg against ./refs
    python -m dupematch config --init            # Create example config file
"""

import sys


def main():
    if len(sys.argv) > 1 and sys.argv[1] == 'cli':
        # Remove 'cli' from argv so argparse in cli.py doesn't see it
        sys.argv.pop(1)
        from .cli import main as cli_main
        sys.exit(cli_main())
    elif len(sys.argv) > 1 and sys.argv[1] == 'config':
        sys.argv.pop(1)
        from .user_config import get_user_config

        config = get_user_config()

        if '--init' in sys.argv or '-i' in sys.argv:
            if config.create_example_config():
                print(f"✓ Created example configuration file at:")
                print(f"  {config.config_file_path}")
            else:
                print(f"✗ Failed to create configuration file.")
                sys.exit(1)
        else:
            print(f"Configuration file: {config.config_file_path}")
            if config.config_file_path.exists():
                print(f"Status: ✓ Found")
            else:
                print(f"Status: ✗ Not found (using defaults)")
                print(f"\nRun 'python -m dupematch config --init' to create one.")

            print(f"\nCurrent settings:")
            print(f"  default_threshold: {config.default_threshold}")
            print(f"  default_workers: {config.default_workers}")
            print(f"  images_dir: {config.images_dir}")
            print(f"  descriptor: {config.descriptor}")
            print(f"  hybrid_mode: {config.hybrid_mode}")
            print(f"  max_upload_bytes: {config.max_upload_bytes:,}")
            print(f"  port: {config.port}")
    else:
        if len(sys.argv) > 1 and sys.argv[1] == 'serve':
            sys.argv.pop(1)
        from .app import main as server_main
        server_main()


if __name__ == '__main__':
    main()
