#!/usr/bin/env python3
"""
Print SigV4-signed headers for a request to the iRobot cloud API.

Usage:
    python sign_request.py https://abc.execute-api.us-east-1.amazonaws.com/v1/robot/pmaps \\
        --region us-east-1 --param visible=true --param activeDetails=2
    python sign_request.py <URL> --identity-id "us-east-1:4b1f..." --json
    python sign_request.py <URL> --region us-east-1 --profile my-profile

Authentication:
    Credentials are taken from, in order:
    - --access-key / --secret-key / --session-token
    - The boto3 credential chain (environment, ~/.aws/credentials, --profile)
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from roomba_cloud.api_client import CloudApiClient
from roomba_cloud.auth import AWSCredentials, SigningError, SigV4Auth, get_aws_credentials
from roomba_cloud.config import config
from roomba_cloud.credentials import parse_region

logger = logging.getLogger("sign_request")


def parse_pairs(values: list[str], option: str) -> dict[str, str]:
    """Parse repeated KEY=VALUE options into a dict."""
    pairs = {}
    for item in values:
        if "=" not in item:
            raise argparse.ArgumentTypeError(f"{option} expects KEY=VALUE, got {item!r}")
        key, value = item.split("=", 1)
        pairs[key] = value
    return pairs


def resolve_credentials(args: argparse.Namespace) -> AWSCredentials:
    if args.access_key or args.secret_key:
        return AWSCredentials(
            access_key=args.access_key or "",
            secret_key=args.secret_key or "",
            session_token=args.session_token,
        )
    return get_aws_credentials(args.profile)


def main():
    parser = argparse.ArgumentParser(
        description="Print AWS SigV4 signed headers for an iRobot cloud API request"
    )
    parser.add_argument("url", help="Absolute request URL")
    parser.add_argument(
        "--method",
        default="GET",
        help="HTTP method (default: GET)",
    )
    region_group = parser.add_mutually_exclusive_group(required=True)
    region_group.add_argument(
        "--region",
        help="AWS region of the endpoint",
    )
    region_group.add_argument(
        "--identity-id",
        help="Cognito identity id; the region is its prefix before ':'",
    )
    parser.add_argument(
        "--service",
        default=config.aws_service,
        help=f"AWS service name (default: {config.aws_service})",
    )
    parser.add_argument(
        "--profile",
        default=None,
        help="AWS profile name to use for credentials",
    )
    parser.add_argument("--access-key", default=None, help="AWS access key id")
    parser.add_argument("--secret-key", default=None, help="AWS secret access key")
    parser.add_argument("--session-token", default=None, help="AWS session token")
    parser.add_argument(
        "--header",
        "-H",
        action="append",
        default=[],
        help="Extra header to sign, as KEY=VALUE (repeatable)",
    )
    parser.add_argument(
        "--param",
        "-p",
        action="append",
        default=[],
        help="Query parameter, as KEY=VALUE (repeatable); replaces the URL's query",
    )
    parser.add_argument(
        "--payload",
        default="",
        help="Request body to sign (default: empty)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output headers as JSON",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log the canonical request",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    try:
        headers = parse_pairs(args.header, "--header")
        params = parse_pairs(args.param, "--param")
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    url = args.url
    if params:
        url = CloudApiClient.build_request_url(url, params)

    try:
        region = args.region or parse_region(args.identity_id)
        auth = SigV4Auth(
            region=region,
            service=args.service,
            credentials=resolve_credentials(args),
        )
        signed = auth.sign_request(
            method=args.method,
            url=url,
            headers=headers,
            body=args.payload,
        )
    except SigningError as e:
        logger.error("Unable to sign request: %s", e)
        sys.exit(1)

    if args.json:
        print(json.dumps({"url": url, "headers": signed}, indent=2))
    else:
        print(f"{args.method.upper()} {url}")
        for name, value in signed.items():
            print(f"{name}: {value}")


if __name__ == "__main__":
    main()
