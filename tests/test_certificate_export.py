import os
import stat
from io import BytesIO

from PyPDF2 import PdfReader

from volcert.models import Volunteer
from volcert.services.certificate_batch import BatchConfig, prepare
from volcert.services.certificate_export import (
    bundle_batch,
    certificate_filename,
    export_batch,
    pdf_data_url,
)
from volcert.shared.certificate_templates import get_template


def _run(volunteers):
    batch = prepare(volunteers, BatchConfig())
    batch.run_all(get_template(None))
    return batch


def test_certificate_filename_is_filesystem_safe():
    assert certificate_filename(Volunteer(1, "Abebe", "Kebede")) == (
        "certificate-Abebe-Kebede.pdf"
    )
    assert certificate_filename(Volunteer(2, "Mary Ann", "O'Neil")) == (
        "certificate-Mary-Ann-ONeil.pdf"
    )
    assert certificate_filename(Volunteer(3, "", None)) == "certificate-3.pdf"
    assert certificate_filename(Volunteer(4, "Sara", ""), "png") == (
        "certificate-Sara.png"
    )


def test_export_writes_completed_documents_with_stagger(tmp_path, roster):
    broken = Volunteer(50, 7, 8)
    batch = _run([roster[0], broken, roster[1]])
    pauses = []
    out_dir = tmp_path / "out"

    written = export_batch(
        batch, str(out_dir), stagger_seconds=0.25, sleep=pauses.append
    )

    assert [os.path.basename(p) for p in written] == [
        "certificate-Abebe-Kebede.pdf",
        "certificate-Sara-Tesfaye.pdf",
    ]
    assert pauses == [0.25]
    for path in written:
        with open(path, "rb") as fh:
            assert fh.read(4) == b"%PDF"
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o644
    assert not [name for name in os.listdir(out_dir) if name.endswith(".part")]


def test_export_keeps_duplicate_names_apart(tmp_path):
    twins = [Volunteer(1, "Sam", "Lee"), Volunteer(2, "Sam", "Lee")]
    batch = _run(twins)
    written = export_batch(batch, str(tmp_path), stagger_seconds=0, sleep=None)
    assert len(set(written)) == 2
    second_id = batch.jobs[1].result.data.certificate_id.lower()
    assert written[1].endswith(f"certificate-Sam-Lee-{second_id}.pdf")


def test_bundle_batch_merges_pages_in_order(roster):
    batch = _run(roster[:3])
    reader = PdfReader(BytesIO(bundle_batch(batch)))
    assert len(reader.pages) == 3
    assert "ABEBE KEBEDE" in reader.pages[0].extract_text()
    assert "DAWIT HAILE" in reader.pages[2].extract_text()


def test_pdf_data_url_prefix():
    assert pdf_data_url(b"%PDF-1.4") == "data:application/pdf;base64,JVBERi0xLjQ="
