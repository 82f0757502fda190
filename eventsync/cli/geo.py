# ==============================================================================
# Geo Commands
# ==============================================================================
"""
Ad-hoc IP geolocation.
"""

from typing import Annotated

import typer

from eventsync.cli.shared import C, EXIT_FAILURE, fail, get_service, print_json
from eventsync.enrichment.ip import is_valid_ipv4


def geo_lookup(
    ip: Annotated[str, typer.Argument(help="IPv4 address to resolve")],
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Resolve an IPv4 address to a location.

    Examples:
        eventsync geo lookup 8.8.8.8
    """
    if not is_valid_ipv4(ip):
        raise typer.BadParameter(f"'{ip}' is not a valid IPv4 address", param_hint="IP")

    geo = get_service().geo.resolve(ip)
    if geo is None:
        fail(f"No location for {ip} (lookup failed or rate limited)")
        raise typer.Exit(EXIT_FAILURE)

    if json_output:
        print_json(geo.model_dump())
        return

    print()
    print(f"  {C.BOLD}IP:{C.RESET}       {ip}")
    print(f"  {C.BOLD}Country:{C.RESET}  {geo.country or '-'} ({geo.country_code or '-'})")
    print(f"  {C.BOLD}Region:{C.RESET}   {geo.region or '-'}")
    print(f"  {C.BOLD}City:{C.RESET}     {geo.city or '-'}")
    print(f"  {C.DIM}Source: {geo.source}{C.RESET}")
    print()
