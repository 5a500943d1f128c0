"""
broadcast_dra CLI - Command Line Interface

Main entry point for all CLI commands. Results are printed as JSON on
stdout; logs go to stderr. Typed protocol errors are reported verbatim
with a non-zero exit status.
"""

import json
import logging
from pathlib import Path

import click
from pydantic import ValidationError as ConfigValidationError

from broadcast_dra import __version__
from broadcast_dra.core.config import load_config
from broadcast_dra.core.exceptions import DRAError
from broadcast_dra.utils.logger import get_logger, setup_logging

SCHEME_CHOICES = ["sha", "pedersen", "range", "knowledge", "audited"]


def parse_false_bid(ctx, param, values):
    """Parse 'BID' or 'BID:withhold' into FalseBid entries."""
    from broadcast_dra.core.auction import FalseBid

    bids = []
    for raw in values:
        amount, _, flag = raw.partition(":")
        if flag not in ("", "withhold", "reveal"):
            raise click.BadParameter(f"unknown flag {flag!r} in {raw!r}", ctx=ctx, param=param)
        try:
            bids.append(FalseBid(float(amount), reveal=flag != "withhold"))
        except ValueError:
            raise click.BadParameter(f"invalid bid {amount!r}", ctx=ctx, param=param) from None
    return bids


def emit(payload: dict) -> None:
    click.echo(json.dumps(payload, indent=2))


def build_scheme(ctx, name):
    from broadcast_dra.core.commitment import make_scheme

    config = ctx.obj["config"]
    return make_scheme(name or config.default_scheme, range_bits=config.range_bits)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--env-file", type=click.Path(dir_okay=False), default=None, help="dotenv file with DRA_* settings")
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, debug, env_file):
    """Public-broadcast deferred revelation auction - research prototype"""
    try:
        config = load_config(env_file)
    except ConfigValidationError as e:
        raise click.UsageError(f"Invalid configuration: {e}") from None

    level = logging.DEBUG if debug else getattr(logging, config.log_level)
    setup_logging(level=level, log_dir=config.log_dir, log_to_file=config.log_to_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


# =============================================================================
# Auction Commands
# =============================================================================


@cli.command("resolve")
@click.option("--reserve", type=float, required=True, help="Reserve price")
@click.option("--collateral", type=float, default=0.0, show_default=True, help="Uniform collateral")
@click.option("--bid", "bids", type=float, multiple=True, required=True, help="Real buyer bid (repeatable)")
@click.option("--false-bid", "false_bids", multiple=True, callback=parse_false_bid,
              help="Shill bid, BID or BID:withhold (repeatable)")
@click.option("--scheme", type=click.Choice(SCHEME_CHOICES), default=None, help="Commitment scheme")
@click.option("--seed", type=int, default=None, help="Seed for reproducible commitments")
@click.option("--transcript/--no-transcript", default=False, help="Include the transcript")
@click.pass_context
def resolve(ctx, reserve, collateral, bids, false_bids, scheme, seed, transcript):
    """Resolve a one-shot auction"""
    from broadcast_dra.crypto import SeededRandomSource, SystemRandomSource
    from broadcast_dra.core.auction import resolve_auction

    logger = get_logger("cli")
    rng = SeededRandomSource(seed) if seed is not None else SystemRandomSource()
    try:
        outcome, record = resolve_auction(
            list(bids),
            false_bids,
            reserve=reserve,
            collateral=collateral,
            scheme=build_scheme(ctx, scheme),
            rng=rng,
        )
    except DRAError as e:
        logger.error(f"Resolution failed: {e}")
        raise click.ClickException(f"{type(e).__name__}: {e}") from None

    payload = {"outcome": outcome.to_dict()}
    if transcript:
        payload["transcript"] = record.to_dict()
    emit(payload)


@cli.command("session")
@click.option("--reserve", type=float, required=True, help="Reserve price")
@click.option("--collateral", type=float, default=0.0, show_default=True, help="Uniform collateral")
@click.option("--bid", "bids", type=float, multiple=True, required=True, help="Real buyer bid (repeatable)")
@click.option("--false-bid", "false_bids", multiple=True, callback=parse_false_bid,
              help="Shill bid, BID or BID:withhold (repeatable)")
@click.option("--scheme", type=click.Choice(SCHEME_CHOICES), default=None, help="Commitment scheme")
@click.option("--seed", type=int, default=0, show_default=True, help="Session seed")
@click.option("--commit-deadline", type=int, default=None, help="Override commit deadline")
@click.option("--reveal-deadline", type=int, default=None, help="Override reveal deadline")
@click.option("--output", type=click.Path(dir_okay=False), default=None, help="Write transcript JSON to file")
@click.pass_context
def session(ctx, reserve, collateral, bids, false_bids, scheme, seed,
            commit_deadline, reveal_deadline, output):
    """Run a full timed commit-reveal-resolve session"""
    from broadcast_dra.core.auction import ParticipantId, PhaseSchedule
    from broadcast_dra.core.protocol import ProtocolSession

    logger = get_logger("cli")
    config = ctx.obj["config"]
    schedule = PhaseSchedule(
        commit_deadline if commit_deadline is not None else config.commit_deadline,
        reveal_deadline if reveal_deadline is not None else config.reveal_deadline,
    )

    try:
        run = ProtocolSession(
            reserve,
            collateral,
            scheme=build_scheme(ctx, scheme),
            schedule=schedule,
            seed=seed,
        )
        for i, bid in enumerate(bids):
            run.commit_real(i, bid)
        for j, fb in enumerate(false_bids):
            run.commit_false(j, fb.bid, will_reveal=fb.reveal)

        run.advance_to(schedule.commit_deadline)
        revealers = [ParticipantId.real(i) for i in range(len(bids))]
        revealers += [ParticipantId.false(j) for j, fb in enumerate(false_bids) if fb.reveal]
        for participant in revealers:
            run.reveal(participant)
        outcome, transcript, network = run.end_reveal_and_resolve()
    except DRAError as e:
        logger.error(f"Session failed: {e}")
        raise click.ClickException(f"{type(e).__name__}: {e}") from None

    if output:
        Path(output).write_text(transcript.to_json())
        logger.info(f"Transcript written to {output}")

    emit({
        "outcome": outcome.to_dict(),
        "transcript": transcript.to_dict(),
        "deliveries": len(network.deliveries()),
    })


@cli.command("audit")
@click.argument("transcript_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--scheme", type=click.Choice([s for s in SCHEME_CHOICES if s != "audited"]),
              default="sha", show_default=True, help="Scheme the run committed under")
@click.pass_context
def audit(ctx, transcript_file, scheme):
    """Re-audit a stored transcript"""
    from broadcast_dra.core.auction import Transcript, audit_transcript

    logger = get_logger("cli")
    try:
        data = json.loads(Path(transcript_file).read_text())
        # Accept the bare transcript or the output of `resolve --transcript`
        if "transcript" in data:
            data = data["transcript"]
        transcript = Transcript.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise click.ClickException(f"Malformed transcript: {e}") from None

    try:
        audit_transcript(transcript, build_scheme(ctx, scheme))
    except DRAError as e:
        logger.error(f"Audit failed: {e}")
        raise click.ClickException(f"{type(e).__name__}: {e}") from None

    emit({
        "status": "ok",
        "commitments": len(transcript.commitments),
        "reveals": len(transcript.reveals),
        "winner": transcript.outcome.to_dict()["winner"],
    })


if __name__ == "__main__":
    cli()
