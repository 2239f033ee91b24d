import json
import os

import click
from flask import current_app
from flask.cli import FlaskGroup

from volcert.app import create_app
from volcert.models import Event, Volunteer
from volcert.services.certificate_batch import BatchConfig, prepare
from volcert.services.certificate_export import bundle_batch, export_batch
from volcert.shared.certificate_templates import get_template, list_templates


cli = FlaskGroup(create_app=create_app)


def _load_json(path: str, key: str) -> list[dict]:
    with open(path, encoding="utf-8") as fh:
        payload = json.load(fh)
    if isinstance(payload, dict):
        payload = payload.get(key, [])
    if not isinstance(payload, list):
        raise click.BadParameter(f"{path} must hold a JSON list of {key}")
    return [item for item in payload if isinstance(item, dict)]


def _batch_options(fn):
    options = (
        click.option(
            "--type",
            "certificate_type",
            default="participation",
            show_default=True,
            help="participation, achievement, leadership or milestone",
        ),
        click.option("--event-id", "event_id", default=None),
        click.option("--events", "events_path", type=click.Path(exists=True)),
        click.option("--milestone-hours", "milestone_hours", default=None),
        click.option("--template", "template_id", default=None),
        click.option("--organizer", "organizer_name", default=None),
        click.option("--location", "location", default=None),
    )
    for option in reversed(options):
        fn = option(fn)
    return fn


def _run(volunteers, selection, options, out_dir, bundle):
    if not out_dir:
        out_dir = os.path.join(current_app.config["SITE_ROOT"], "certificates")
    config = BatchConfig.from_dict(
        {
            "certificate_type": options["certificate_type"],
            "event_id": options["event_id"],
            "milestone_hours": options["milestone_hours"],
            "organizer_name": options["organizer_name"]
            or current_app.config["CERT_ORGANIZER_NAME"],
            "location": options["location"],
        },
        default_location=current_app.config["CERT_LOCATION"],
    )
    events = []
    if options["events_path"]:
        raw_events = _load_json(options["events_path"], "events")
        events = [Event.from_dict(e) for e in raw_events]
    try:
        batch = prepare(selection, config, events=events, roster=volunteers)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    template = get_template(
        options["template_id"] or current_app.config["CERT_DEFAULT_TEMPLATE"]
    )
    branding = current_app.config["CERT_BRANDING"]
    with click.progressbar(length=len(batch), label="Generating") as bar:
        for _ in batch.run(template, branding=branding):
            bar.update(1)

    for job in batch.failed_jobs():
        click.echo(f"{job.recipient.full_name}: {job.error}", err=True)
    if bundle:
        written = []
        if batch.completed_jobs():
            path = os.path.join(out_dir, "certificates.pdf")
            os.makedirs(out_dir, exist_ok=True)
            with open(path, "wb") as fh:
                fh.write(bundle_batch(batch))
            written.append(path)
    else:
        written = export_batch(
            batch,
            out_dir,
            stagger_seconds=current_app.config["CERT_EXPORT_STAGGER_SECONDS"],
        )
    for path in written:
        click.echo(path)
    summary = batch.summary()
    click.echo(f"completed={summary['completed']} errors={summary['error']}")
    return batch


@cli.command("list_templates")
def list_templates_cmd():
    """Print the registered certificate templates."""
    for template in list_templates():
        click.echo(
            f"{template.id}\t{template.type}\t{template.layout_variant}\t{template.name}"
        )


@cli.command("gen_cert")
@click.option(
    "--volunteers", "volunteers_path", required=True, type=click.Path(exists=True)
)
@click.option("--volunteer-id", "volunteer_id", required=True)
@click.option("--out-dir", "out_dir", help="Defaults to SITE_ROOT/certificates")
@_batch_options
def gen_cert(volunteers_path: str, volunteer_id: str, out_dir, **options):
    """Generate a certificate for a single volunteer."""
    volunteers = [
        Volunteer.from_dict(v) for v in _load_json(volunteers_path, "volunteers")
    ]
    match = [v for v in volunteers if str(v.volunteer_id) == str(volunteer_id)]
    if not match:
        click.echo("Not found", err=True)
        return
    _run(volunteers, match, options, out_dir, bundle=False)


@cli.command("gen_batch")
@click.option(
    "--volunteers", "volunteers_path", required=True, type=click.Path(exists=True)
)
@click.option(
    "--select",
    "selected",
    multiple=True,
    help="Volunteer id to include; repeat it. Defaults to everyone.",
)
@click.option("--out-dir", "out_dir", help="Defaults to SITE_ROOT/certificates")
@click.option("--bundle", is_flag=True, help="Merge every certificate into one PDF")
@_batch_options
def gen_batch(volunteers_path: str, selected, out_dir, bundle: bool, **options):
    """Generate certificates for a roster of volunteers."""
    volunteers = [
        Volunteer.from_dict(v) for v in _load_json(volunteers_path, "volunteers")
    ]
    if selected:
        by_id = {str(v.volunteer_id): v for v in volunteers}
        selection = [by_id[s] for s in selected if s in by_id]
    else:
        selection = volunteers
    _run(volunteers, selection, options, out_dir, bundle=bundle)


if __name__ == "__main__":
    cli()
