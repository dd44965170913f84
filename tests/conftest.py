import pytest
from reportlab.pdfgen import canvas
from contractintel.storage.db import create_session_factory, init_db, make_engine
from contractintel.storage.files import LocalFileStorage
from contractintel.storage.repository import ContractRepository


def write_pdf(path, pages):
    """Write one PDF page per string; newlines become separate text lines."""
    c = canvas.Canvas(str(path))
    for text in pages:
        y = 800
        for line in text.split("\n"):
            if line:
                c.drawString(40, y, line)
            y -= 14
        c.showPage()
    c.save()
    return path


@pytest.fixture
def make_pdf(tmp_path):
    counter = {"n": 0}

    def _make(pages):
        counter["n"] += 1
        return write_pdf(tmp_path / f"doc{counter['n']}.pdf", pages)
    return _make


@pytest.fixture
def repository(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'contracts.db'}")
    init_db(engine)
    yield ContractRepository(create_session_factory(engine))
    engine.dispose()


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(tmp_path / "storage")
