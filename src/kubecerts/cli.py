"""Command-line entry point.

Issues a client certificate signed by the cluster CA and writes it either as a
certificate/key file pair or into a kubeconfig user entry.
"""

import argparse
import os
import sys
from pathlib import Path

from kubecerts import __version__
from kubecerts.ca.issuer import IssuanceRequest, SerialStrategy, split_organizations
from kubecerts.ca.loader import open_ca
from kubecerts.errors import KubeCertsError
from kubecerts.paths import expand_home, resolve_kubeconfig_path
from kubecerts.services.issuance_service import IssuanceService
from kubecerts.sinks import CredentialSink, FileCredentialSink, KubeconfigCredentialSink
from shared.config import settings
from shared.logging import setup_logging
from shared.metrics import setup_metrics
from shared.tracing import setup_tracing

EXIT_OK = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kubecerts",
        description="Issue a Kubernetes client certificate signed by an existing cluster CA.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--cn", default="", help="client certificate CommonName (user name)")
    parser.add_argument(
        "-o",
        "--organization",
        default="",
        help="client certificate Organization(s) (groups), comma-separated",
    )
    parser.add_argument(
        "--ca-cert", default=settings.CA_CERT_PATH, help="path to the cluster CA certificate"
    )
    parser.add_argument("--ca-key", default=settings.CA_KEY_PATH, help="path to the cluster CA key")
    parser.add_argument(
        "--cert", default=settings.CERT_OUT, help="output path for the client certificate"
    )
    parser.add_argument("--key", default=settings.KEY_OUT, help="output path for the client key")
    parser.add_argument(
        "--kubeconfig",
        nargs="?",
        const="",
        default=None,
        help="merge into a kubeconfig instead of writing files "
        "(default path: first $KUBECONFIG entry, then ~/.kube/config)",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=settings.VALIDITY_DAYS,
        help="certificate validity in days (default: %(default)s)",
    )
    parser.add_argument(
        "--key-size",
        type=int,
        default=settings.KEY_SIZE,
        help="RSA key size in bits (default: %(default)s)",
    )
    parser.add_argument(
        "--random-serial",
        action="store_true",
        default=settings.SERIAL_STRATEGY == SerialStrategy.RANDOM,
        help="use a random serial number instead of the current Unix time",
    )
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="logging level")
    return parser


def configure_telemetry(log_level: str) -> None:
    setup_logging(log_level)
    setup_tracing(settings.APP_NAME)
    setup_metrics(settings.APP_NAME)


def build_sink(args: argparse.Namespace, home: str) -> CredentialSink:
    """Pick the credential sink from the parsed arguments."""
    if args.kubeconfig is not None:
        if args.kubeconfig:
            path = expand_home(args.kubeconfig, home)
        else:
            path = resolve_kubeconfig_path(home, os.environ.get("KUBECONFIG", ""))
        return KubeconfigCredentialSink(path)
    return FileCredentialSink(expand_home(args.cert, home), expand_home(args.key, home))


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    configure_telemetry(args.log_level)

    if not args.cn or not split_organizations(args.organization):
        print("Invalid input: CommonName and Organization are required.", file=sys.stderr)
        return EXIT_FAILURE

    try:
        home = os.path.normpath(str(Path.home()))
    except RuntimeError as e:
        print(f"Fatal: {e}", file=sys.stderr)
        return EXIT_FAILURE

    try:
        request = IssuanceRequest.for_validity(
            common_name=args.cn,
            organizations=split_organizations(args.organization),
            validity_days=args.days,
            key_size=args.key_size,
        )
    except ValueError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return EXIT_FAILURE

    strategy = SerialStrategy.RANDOM if args.random_serial else SerialStrategy.TIMESTAMP
    sink = build_sink(args, home)

    try:
        ca_key_pair = open_ca(expand_home(args.ca_cert, home), expand_home(args.ca_key, home))
        credential = IssuanceService(ca_key_pair, serial_strategy=strategy).issue_and_install(
            request, sink
        )
    except KubeCertsError as e:
        print(f"Fatal: {e}", file=sys.stderr)
        return EXIT_FAILURE

    print(
        f"Issued certificate for {credential.common_name} "
        f"(serial {credential.serial_number}, expires {credential.not_after.isoformat()}) "
        f"to {sink.describe()}"
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
