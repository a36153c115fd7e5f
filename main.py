#!/usr/bin/env python3
"""
JellySort
Organize loose TV episodes and movies into Jellyfin-style folders, with undo.
"""

import click
import fnmatch
import os
from dotenv import load_dotenv

from jellysort.api import apply, list_manifests, organize, undo as undo_manifest
from jellysort.errors import JellySortError
from jellysort.manifest import ManifestStore
from jellysort.models import OperationStatus, OrganizeMode
from jellysort.utils import build_config, load_config, setup_logging

# Load environment variables
load_dotenv()

@click.group()
@click.version_option(version='1.0.0')
def cli():
    """Organize media files by season or by movie title, and undo past runs"""

@cli.command('organize')
@click.argument('path', type=click.Path(exists=True, file_okay=False))
@click.option('--type', 'media_type', type=click.Choice(['series', 'movies']), required=True, help='Media type to process')
@click.option('--dry-run', is_flag=True, help='Preview mode, do not actually move files')
@click.option('--conflict', type=click.Choice(['skip', 'overwrite', 'rename']), help='What to do when the target file exists')
@click.option('--show-name', help='Series name to use instead of the folder name')
@click.option('--only', 'patterns', multiple=True, help='Only apply files whose original name matches this glob (repeatable)')
@click.option('--yes', '-y', is_flag=True, help='Apply without asking for confirmation')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), help='Settings file (default: config/settings.yaml)')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.pass_context
def organize_command(ctx, path, media_type, dry_run, conflict, show_name, patterns, yes, config_path, verbose):
    """Organize media files in the specified directory"""
    try:
        settings = load_config(config_path)
        processing = settings.setdefault('processing', {})
        if dry_run:
            processing['dry_run'] = True
        if conflict:
            processing['conflict_action'] = conflict
        if show_name:
            processing['show_name'] = show_name
        config = build_config(settings)
        # dry runs leave no log file behind
        setup_logging(verbose, log_file=not config.dry_run)
        mode = OrganizeMode(media_type)

        click.echo(f"Starting media organization for: {path}")
        click.echo(f"Mode: {'DRY RUN' if config.dry_run else 'LIVE'}")
        click.echo(f"Type: {mode.value}")
        click.echo(f"On conflict: {config.conflict_action.value}")

        plan = organize(path, mode, config)
        preview = plan.preview()
        _print_preview(plan, preview)

        selected = [item.source for item in preview if item.matched]
        if patterns:
            selected = [item.source for item in preview
                        if item.matched and any(fnmatch.fnmatch(item.original_name, p) for p in patterns)]
            click.echo(f"Selected {len(selected)} of {len(plan.entries)} matched files")

        if not selected:
            click.echo("Nothing to organize.")
            return

        if not config.dry_run and not yes:
            click.confirm(f"Move {len(selected)} files?", abort=True)

        result = apply(plan, selected, config)

    except JellySortError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(2)

    counts = {status: 0 for status in OperationStatus}
    for op_result in result.results:
        counts[op_result.status] += 1

    click.echo("\nResults:")
    if config.dry_run:
        click.echo(f"  Would move: {counts[OperationStatus.WOULD_MOVE]}")
    else:
        click.echo(f"  Moved: {result.moved_count}")
    click.echo(f"  Skipped: {counts[OperationStatus.SKIPPED]}")
    click.echo(f"  Already in place: {counts[OperationStatus.SAME_FILE]}")
    click.echo(f"  Failed: {len(result.failures)}")
    for failure in result.failures:
        click.echo(f"    {failure.operation.source} -> {failure.destination}: {failure.message}", err=True)
    if result.manifest_path:
        click.echo(f"  Manifest: {result.manifest_path}")

    if result.failures:
        ctx.exit(1)

@cli.command('manifests')
@click.argument('path', type=click.Path(exists=True, file_okay=False))
@click.pass_context
def manifests_command(ctx, path):
    """List undo manifests stored under PATH, oldest first"""
    try:
        paths = list_manifests(path)
        if not paths:
            click.echo("No manifests found.")
            return
        for manifest_path in paths:
            manifest = ManifestStore.load_manifest(manifest_path)
            click.echo(f"{manifest_path}  {manifest.timestamp}  {len(manifest.operations)} operations")
    except JellySortError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(2)

@cli.command('undo')
@click.argument('manifest', required=False, type=click.Path(dir_okay=False))
@click.option('--latest', 'latest_root', type=click.Path(exists=True, file_okay=False), help='Undo the newest manifest stored under this folder')
@click.option('--yes', '-y', is_flag=True, help='Undo without asking for confirmation')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.pass_context
def undo_command(ctx, manifest, latest_root, yes, verbose):
    """Move files recorded in MANIFEST back to their original locations"""
    if bool(manifest) == bool(latest_root):
        raise click.UsageError("Give either a MANIFEST path or --latest PATH")

    setup_logging(verbose)
    try:
        if latest_root:
            paths = list_manifests(latest_root)
            if not paths:
                click.echo("No manifests found.")
                return
            manifest = str(paths[-1])

        data = ManifestStore.load_manifest(manifest)
        if not data.operations:
            click.echo("Manifest is empty.")
            return

        if not yes:
            click.confirm(f"Undo {len(data.operations)} operations from {data.timestamp}?", abort=True)

        click.echo(f"Restoring from {os.path.basename(manifest)}...")
        result = undo_manifest(manifest)
    except JellySortError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(2)

    click.echo(f"Undo complete. {result.restored_count} files restored.")
    for src, dst, reason in result.failures:
        click.echo(f"  {dst}: {reason}", err=True)
    if result.failures:
        ctx.exit(1)

def _print_preview(plan, preview):
    matched = [item for item in preview if item.matched]
    unmatched = [item for item in preview if not item.matched]
    sidecars = sum(len(entry.sidecars) for entry in plan.entries)

    click.echo(f"Found {len(matched)} matched files ({sidecars} sidecar files), {len(unmatched)} unmatched")
    for item in matched:
        folder = os.path.relpath(item.target_folder, plan.root)
        click.echo(f"  {item.original_name} -> {os.path.join(folder, item.new_name)}")
    for item in unmatched:
        click.echo(f"  [unmatched] {item.original_name}: {item.reason}")
    for error in plan.errors:
        click.echo(f"  [warning] {error}", err=True)

if __name__ == '__main__':
    cli()
