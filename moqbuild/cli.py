"""
CLI interface for moqbuild.

Provides commands: build, list, show, tools.

Every implementation is built by the same command:

    moqbuild build moq-rs --ref v0.5.0
"""

import json
from pathlib import Path

import click

from moqbuild import __version__
from moqbuild.errors import MoqbuildError
from moqbuild.utils import print_error, print_info, print_success, setup_logging


def _fail(ctx, error: Exception) -> None:
    """Report a fatal error and exit with status 1."""
    print_error(str(error))
    if ctx.obj.get("verbose"):
        import traceback
        traceback.print_exc()
    raise SystemExit(1)


def _require_value(ctx, param, value):
    """Reject an option given with an empty value, e.g. --ref ''."""
    if value is not None and not value.strip():
        raise click.BadParameter("requires a value")
    return value


def _get_config(ctx):
    """Load the runner config once per invocation."""
    from moqbuild.config import load_config

    if "config" not in ctx.obj:
        ctx.obj["config"] = load_config(ctx.obj.get("config_path"))
    return ctx.obj["config"]


def _get_registry(ctx):
    from moqbuild.registry import ImplementationRegistry

    return ImplementationRegistry(_get_config(ctx).builds_dir)


@click.group()
@click.version_option(version=__version__, prog_name="moqbuild")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Runner configuration file (default: ./moqbuild.yaml)",
)
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, config_path, verbose):
    """
    moqbuild - Build MoQ implementation images from source with provenance.

    Resolves a source tree, builds one container image per target and
    records what was built in .last-build.json.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


@main.command()
@click.argument("implementation")
@click.option("--ref", callback=_require_value, help="Git ref to checkout (branch/tag/commit)")
@click.option("--repo", callback=_require_value, help="Clone from a different repository (fork)")
@click.option(
    "--local",
    "local_path",
    type=click.Path(),
    callback=_require_value,
    help="Use local checkout instead of cloning",
)
@click.option("--target", callback=_require_value, help="Build only a specific target (e.g. relay, client)")
@click.pass_context
def build(ctx, implementation, ref, repo, local_path, target):
    """
    Build IMPLEMENTATION's images and record provenance.

    Examples:

      # Clone the default branch
      moqbuild build moq-rs

      # Clone a specific tag
      moqbuild build moq-rs --ref v0.5.0

      # Build a fork
      moqbuild build moq-rs --repo https://github.com/user/moq-rs --ref branch

      # Use a local checkout, relay only
      moqbuild build moq-rs --local ~/git/moq-rs --target relay
    """
    from moqbuild.pipeline import BuildPipeline
    from moqbuild.schemas import SourceSelection

    selection = SourceSelection(
        ref=ref,
        local_path=Path(local_path) if local_path is not None else None,
        repo_override=repo,
        target=target,
    )

    try:
        config = _get_config(ctx)
        setup_logging(
            log_level="DEBUG" if ctx.obj["verbose"] else config.get_log_level(),
            log_format=config.get_log_format(),
            console_output=config.should_log_to_console(),
            log_file=config.get_log_file_path(),
        )
        BuildPipeline(config).run(implementation, selection)
    except MoqbuildError as e:
        _fail(ctx, e)


@main.command("list")
@click.pass_context
def list_implementations(ctx):
    """List implementations and their targets."""
    try:
        registry = _get_registry(ctx)
        names = registry.list_implementations()
        if not names:
            click.echo(f"No implementations found in {registry.builds_dir}")
            return

        for name in names:
            impl = registry.load(name)
            targets = ", ".join(
                f"{t}*" if t in impl.default_targets else t for t in impl.target_names
            )
            click.echo(f"{name}  [{impl.source_type.value}]  {targets}")
    except MoqbuildError as e:
        _fail(ctx, e)


@main.command()
@click.argument("implementation")
@click.pass_context
def show(ctx, implementation):
    """
    Show the last provenance record for IMPLEMENTATION.

    Example:

      moqbuild show moq-rs
    """
    from moqbuild.provenance import ProvenanceRecorder
    from moqbuild.tools.git import GitAdapter

    try:
        config = _get_config(ctx)
        impl = _get_registry(ctx).load(implementation)
        recorder = ProvenanceRecorder(config.runner_root, GitAdapter(config.git_bin))
        record = recorder.load_last(impl)
    except MoqbuildError as e:
        _fail(ctx, e)

    if record is None:
        print_info(f"No build recorded for {implementation} yet")
        raise SystemExit(1)

    click.echo(json.dumps(record.to_dict(), indent=2))


@main.command()
@click.pass_context
def tools(ctx):
    """Check that git and docker are available."""
    from moqbuild.tools import DockerAdapter, GitAdapter

    try:
        config = _get_config(ctx)
    except MoqbuildError as e:
        _fail(ctx, e)

    all_valid = True
    for adapter in (GitAdapter(config.git_bin), DockerAdapter(config.docker_bin)):
        validation = adapter.validate()
        if validation["valid"]:
            print_success(f"{adapter.tool_name}: {validation['version']}")
        else:
            all_valid = False
            for error in validation["errors"]:
                print_error(error)

    if not all_valid:
        raise SystemExit(1)
