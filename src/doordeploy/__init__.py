"""
doordeploy - build and deploy the door monitor to Raspberry Pi devices

Cross-compiles the service, stops any running instance on the Pi, copies the
new binary, installs a systemd unit and seeds an example config file.
"""
import argparse
import sys

__version__ = "1.0.0"


class DeployArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits 1 (not 2) on bad usage."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def main():
    """Main CLI entry point"""
    from doordeploy.commands import deploy

    parser = DeployArgumentParser(
        prog='doordeploy',
        description='Build and deploy the door monitor to a Raspberry Pi',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        epilog='''
Examples:
  doordeploy -h raspberrypi.local                               # Deploy to Pi Zero/1
  doordeploy -h 192.168.1.100 -t aarch64-unknown-linux-gnu      # Deploy to Pi 4/5
  doordeploy -h mypi.local -r                                   # Release build and deploy
  doordeploy -b                                                 # Build for all targets
        '''
    )
    deploy.setup_parser(parser)

    args = parser.parse_args()

    try:
        sys.exit(deploy.execute(args))
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)
