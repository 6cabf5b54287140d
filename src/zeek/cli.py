#!/usr/bin/env python3
"""
Zeek CLI

Command-line interface for ZKsync: fetch and verify storage proofs against L1
batch root hashes, and query gas and fee information.
"""

import sys
import json
import logging
from typing import Any, Dict, List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .api.proof_service import ProofService, ProofServiceError
from .api.rpc_client import ZkSyncRPCClient, ZkSyncRPCError
from .constants import DEFAULT_RPC_URL
from .gas import (
    build_call_request,
    calculate_pubdata_cost,
    parse_fee_estimate,
    wei_to_gwei,
)
from .main import (
    ProofFormatError,
    VerificationReport,
    verify_proof_detailed,
    verify_storage_proofs,
)
from .merkle.encoding import HexDecodeError, bytes_to_hex
from .models.api_models import ProofResult, StorageProof
from .visualize_merkle import visualize_merkle_path

# Configure rich console
console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def print_storage_proof(address: str, proof: StorageProof):
    """Print the fields of one storage proof."""
    table = Table(title="Storage Proof")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Address", address)
    table.add_row("Storage Key", proof.key)
    table.add_row("Value", proof.value)
    table.add_row("Index", str(proof.index))
    table.add_row("Siblings", str(len(proof.proof)))

    console.print(table)


def print_verification(report: VerificationReport, show_steps: bool = False):
    """Print the outcome of a verification, optionally with every fold level."""
    if show_steps:
        steps = Table(title="Root Fold")
        steps.add_column("Level", style="cyan", justify="right")
        steps.add_column("Bit")
        steps.add_column("Position")
        steps.add_column("Sibling Hash", style="green")
        steps.add_column("Combined Hash", style="yellow")
        for step in report.steps:
            steps.add_row(
                str(step.depth),
                str(int(step.bit)),
                f"{step.position.title()} Child",
                bytes_to_hex(step.sibling),
                bytes_to_hex(step.combined),
            )
        console.print(steps)

    console.print(f"Leaf Hash: {bytes_to_hex(report.leaf_hash)}")
    console.print(f"Reconstructed Root Hash: {bytes_to_hex(report.reconstructed_root)}")
    console.print(f"Expected Root Hash: {bytes_to_hex(report.expected_root)}")
    if report.is_valid:
        console.print("[bold green]Proof Verified: True[/bold green]")
    else:
        console.print("[bold red]Proof Verified: False[/bold red]")


def load_proof_file(path: str) -> ProofResult:
    """
    Load a zks_getProof result from a JSON file.

    Accepts either a full JSON-RPC response (with a ``result`` member) or the
    bare result object, with camelCase or snake_case keys.
    """
    with open(path) as f:
        raw = json.load(f)

    if isinstance(raw, dict) and "result" in raw:
        raw = raw["result"]

    # Reuse the RPC sanitizer so files saved from a node parse like live responses
    data = ZkSyncRPCClient.sanitize_rpc_data(raw)
    return ProofResult.model_validate(data)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--rpc-url",
    envvar="ZKSYNC_RPC_URL",
    default=DEFAULT_RPC_URL,
    show_default=True,
    help="ZKsync RPC URL",
)
@click.pass_context
def cli(ctx, verbose: bool, rpc_url: str):
    """
    Zeek - CLI tool for ZKsync.

    Fetch storage proofs for an account and verify them against the root hash
    of the L1 batch they belong to, or query gas and fee information.
    """
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["rpc_url"] = rpc_url


def _client(ctx) -> ZkSyncRPCClient:
    return ZkSyncRPCClient(rpc_url=ctx.obj["rpc_url"])


@cli.command()
@click.option("--address", "-a", required=True, help="Account address to fetch storage proofs for")
@click.option("--keys", "-k", multiple=True, required=True, help="Storage key to fetch a proof for (repeatable)")
@click.option("--batch", "-b", type=click.IntRange(min=0), required=True, help="L1 batch number")
@click.option("--verify", "verify_", is_flag=True, help="Verify the proof against the batch root hash")
@click.option("--visualize", is_flag=True, help="Visualize the Merkle path")
@click.option("--show-steps", is_flag=True, help="Show every level of the root fold when verifying")
@click.option(
    "--format",
    "format_output",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.pass_context
def proof(
    ctx,
    address: str,
    keys: List[str],
    batch: int,
    verify_: bool,
    visualize: bool,
    show_steps: bool,
    format_output: str,
):
    """
    Fetch storage proofs for an account at an L1 batch.

    Example: zeek proof -a 0x0000...8003 -k 0x...01 -b 500000 --verify
    """
    client = _client(ctx)

    if format_output == "json":
        try:
            result = ProofService(client).get_proofs(address, list(keys), batch, verify=verify_)
        except (ZkSyncRPCError, ProofServiceError) as e:
            logger.error(f"Error fetching storage proofs: {e}")
            raise click.ClickException(str(e))
        console.print_json(json.dumps(result))
        return

    try:
        proof_result = client.get_proof(address, list(keys), batch)
        root_hash = ProofService(client).get_batch_root(batch) if verify_ else None
    except (ZkSyncRPCError, ProofServiceError) as e:
        logger.error(f"Error fetching storage proofs: {e}")
        raise click.ClickException(str(e))

    console.print(f"Address: {proof_result.address}")

    verifications = verify_storage_proofs(proof_result, root_hash) if root_hash else []

    for position, storage_proof in enumerate(proof_result.storage_proof):
        print_storage_proof(proof_result.address, storage_proof)

        if verifications:
            verification = verifications[position]
            if verification.error:
                console.print(f"[red]Could not verify proof: {verification.error}[/red]")
            else:
                print_verification(verification.report, show_steps)

        if visualize:
            visualize_merkle_path(storage_proof, console)


@cli.command()
@click.argument("proof_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--root", "-r", "root_hash", required=True, help="Expected root hash of the L1 batch")
@click.option("--address", "-a", help="Account address (defaults to the address in the file)")
@click.option("--visualize", is_flag=True, help="Visualize the Merkle path")
@click.option("--show-steps", is_flag=True, help="Show every level of the root fold")
@click.pass_context
def verify(
    ctx,
    proof_file: str,
    root_hash: str,
    address: Optional[str],
    visualize: bool,
    show_steps: bool,
):
    """
    Verify storage proofs saved to a file, without any RPC call.

    PROOF_FILE: JSON file holding a zks_getProof result

    Exits with status 1 if any proof does not verify.
    """
    try:
        proof_result = load_proof_file(proof_file)
    except (OSError, ValueError) as e:
        logger.error(f"Error loading {proof_file}: {e}")
        raise click.ClickException(f"Failed to load proofs from {proof_file}: {e}")

    address = address or proof_result.address
    all_valid = True

    for storage_proof in proof_result.storage_proof:
        print_storage_proof(address, storage_proof)
        try:
            report = verify_proof_detailed(storage_proof, root_hash, address, storage_proof.key)
        except (HexDecodeError, ProofFormatError) as e:
            console.print(f"[red]Could not verify proof: {e}[/red]")
            all_valid = False
            continue

        print_verification(report, show_steps)
        all_valid = all_valid and report.is_valid

        if visualize:
            visualize_merkle_path(storage_proof, console)

    if not all_valid:
        sys.exit(1)


@cli.group()
def gas():
    """Gas-related commands."""


def _print_fee_estimate(values: Dict[str, Any]):
    console.print(f"Gas Limit: {values['gas_limit']}")
    console.print(f"Max Fee Per Gas: {wei_to_gwei(values['max_fee_per_gas']):.2f} Gwei")
    console.print(
        f"Max Priority Fee Per Gas: {wei_to_gwei(values['max_priority_fee_per_gas']):.2f} Gwei"
    )
    console.print(f"Gas Per Pubdata Limit: {values['gas_per_pubdata_limit']}")


@gas.command("estimate-fee")
@click.option("--to", "-t", help="Transaction recipient address")
@click.option("--data", "-d", default="0x", show_default=True, help="Transaction data")
@click.option("--from", "-f", "from_address", help="Sender address")
@click.option("--value", type=click.FloatRange(min=0), help="Value to send (in ETH)")
@click.option("--gas-limit", type=click.IntRange(min=0), help="Gas limit")
@click.option("--gas-price", type=click.FloatRange(min=0), help="Gas price (in Gwei)")
@click.option("--show-pubdata", is_flag=True, help="Show pubdata costs")
@click.pass_context
def estimate_fee(
    ctx,
    to: Optional[str],
    data: str,
    from_address: Optional[str],
    value: Optional[float],
    gas_limit: Optional[int],
    gas_price: Optional[float],
    show_pubdata: bool,
):
    """Estimate the fee for a transaction."""
    client = _client(ctx)
    try:
        call_request = build_call_request(
            to=to,
            data=data,
            from_address=from_address,
            value_eth=value,
            gas_limit=gas_limit,
            gas_price_gwei=gas_price,
        )
        fee_estimate = client.estimate_fee(call_request)
        _print_fee_estimate(parse_fee_estimate(fee_estimate))

        if show_pubdata:
            fee_params = client.get_fee_params()
            pubdata_cost = calculate_pubdata_cost(fee_estimate, fee_params)
            console.print(f"Pubdata Cost: {pubdata_cost:.8f} ETH")
    except (ZkSyncRPCError, ValueError, OverflowError) as e:
        logger.error(f"Error estimating fee: {e}")
        raise click.ClickException(str(e))


@gas.command("estimate-gas-l1-to-l2")
@click.option("--to", "-t", required=True, help="Transaction recipient address")
@click.option("--data", "-d", default="0x", show_default=True, help="Transaction data")
@click.option("--from", "-f", "from_address", help="Sender address")
@click.option("--value", type=click.FloatRange(min=0), help="Value to send (in ETH)")
@click.pass_context
def estimate_gas_l1_to_l2(
    ctx, to: str, data: str, from_address: Optional[str], value: Optional[float]
):
    """Estimate gas for L1 to L2 transactions."""
    try:
        call_request = build_call_request(
            to=to, data=data, from_address=from_address, value_eth=value
        )
        gas_estimate = _client(ctx).estimate_gas_l1_to_l2(call_request)
    except (ZkSyncRPCError, ValueError, OverflowError) as e:
        logger.error(f"Error estimating L1 to L2 gas: {e}")
        raise click.ClickException(str(e))

    console.print(f"Estimated Gas for L1 to L2 Transaction: {gas_estimate}")


@gas.command("fee-params")
@click.pass_context
def fee_params(ctx):
    """Get current fee parameters."""
    try:
        params = _client(ctx).get_fee_params()
    except ZkSyncRPCError as e:
        logger.error(f"Error fetching fee parameters: {e}")
        raise click.ClickException(str(e))

    table = Table(title="Fee Parameters (V2)")
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="green")

    config = params.config
    table.add_row("Minimal L2 Gas Price (wei)", str(config.minimal_l2_gas_price))
    table.add_row("Compute Overhead Part", str(config.compute_overhead_part))
    table.add_row("Pubdata Overhead Part", str(config.pubdata_overhead_part))
    table.add_row("Batch Overhead L1 Gas", str(config.batch_overhead_l1_gas))
    table.add_row("Max Gas Per Batch", str(config.max_gas_per_batch))
    table.add_row("Max Pubdata Per Batch", str(config.max_pubdata_per_batch))
    table.add_row("L1 Gas Price (wei)", str(params.l1_gas_price))
    table.add_row("L1 Pubdata Price (wei)", str(params.l1_pubdata_price))

    console.print(table)


@gas.command("l1-gas-price")
@click.pass_context
def l1_gas_price(ctx):
    """Get current L1 gas price."""
    try:
        price = _client(ctx).get_l1_gas_price()
    except ZkSyncRPCError as e:
        logger.error(f"Error fetching L1 gas price: {e}")
        raise click.ClickException(str(e))

    console.print(f"Current L1 Gas Price: {wei_to_gwei(price):.2f} Gwei")


@gas.command("gas-price")
@click.pass_context
def gas_price(ctx):
    """Get current L2 gas price."""
    try:
        price = _client(ctx).get_gas_price()
    except ZkSyncRPCError as e:
        logger.error(f"Error fetching gas price: {e}")
        raise click.ClickException(str(e))

    console.print(f"Current L2 Gas Price: {wei_to_gwei(price):.2f} Gwei")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, type=int, help="Port to bind to")
@click.option("--dev", is_flag=True, help="Enable development mode with auto-reload")
@click.pass_context
def serve(ctx, host: str, port: int, dev: bool):
    """Start the REST API server."""
    from .api.rest_api import run_server

    console.print(
        Panel(
            f"Starting Zeek API Server\n\n"
            f"Server: http://{host}:{port}\n"
            f"Docs: http://{host}:{port}/docs\n"
            f"Health: http://{host}:{port}/health\n\n"
            f"Press Ctrl+C to stop",
            title="API Server",
            border_style="green",
        )
    )

    try:
        run_server(host=host, port=port, dev=dev)
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped by user[/yellow]")


@cli.command()
@click.pass_context
def health(ctx):
    """Check the health of the configured RPC endpoint."""
    console.print("[cyan]Checking system health...[/cyan]")

    client = _client(ctx)
    rpc_status = client.health_check()

    table = Table(title="System Health Check")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    table.add_row("ZKsync RPC", "Healthy" if rpc_status else "Unhealthy", client.rpc_url)
    console.print(table)

    if not rpc_status:
        sys.exit(1)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
