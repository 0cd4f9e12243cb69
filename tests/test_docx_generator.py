import pytest
from docx import Document

import docx_generator
import report
from anchors import iter_paragraphs
from collaborators import StaticLicenseCatalog, StaticUserDirectory
from config import AppConfig, ObligationConfig
from disclosure import DisclosurePipeline
from docx_generator import DocxGenerator
from docx_utils import merge_row
from errors import (
    CorruptTemplateError,
    GenerationError,
    LayoutContractError,
    SerializationError,
    TemplateLoadError,
    UpstreamLookupError,
)
from layout import PendingLayout, ReportTable
from models import (
    License,
    ObligationFulfillment,
    ObligationLevel,
    ObligationStatusInfo,
    OutputVariant,
    ProjectObligation,
    Release,
    User,
)
from pipeline import NO_RELEASE_ERROR
from report import NO_COMMERCIAL_3RD_PARTY, NO_LINKED_OBLIGATIONS
from samples import (
    FAILURE,
    bookmark_names,
    hyperlink_anchors,
    lic,
    obligation,
    obligation_result,
    project,
    reopen,
    result,
    row_texts,
    texts,
)
from templates import (
    OBLIGATION_TABLE_HEADERS,
    BuiltinTemplateStore,
    DirectoryTemplateStore,
    build_report_template,
    document_bytes,
    load_template,
)


class _BytesStore:
    def __init__(self, document):
        self.data = document_bytes(document)

    def load_bytes(self, variant):
        return self.data


class _FailingDirectory:
    def get_by_email(self, email):
        raise UpstreamLookupError("directory offline")


class _FailingCatalog:
    def get_licenses(self):
        raise UpstreamLookupError("catalog offline")


def _bookmarks(document):
    return [name for p in iter_paragraphs(document) for name in bookmark_names(p)]


def _links(document):
    return [(p.text, anchor) for p in iter_paragraphs(document) for anchor in hyperlink_anchors(p)]


# ---------- Disclosure ----------

def test_disclosure_round_trip() -> None:
    results = [
        result("beta", [lic("MIT")], vendor="Beta Corp"),
        result("alpha", [lic("MIT", acks=["Thanks to Acme"])], vendor="Acme", copyrights=["(c) Acme"]),
    ]

    data = DocxGenerator().generate(
        OutputVariant.DISCLOSURE, results, project(license_info_header_text="Header text"),
        external_ids={"purl": "pkg:generic/demo"},
    )
    document = reopen(data)
    paragraphs = texts(document)

    assert len(document.tables) == 1
    ext_table = document.tables[0]
    assert [row_texts(r) for r in ext_table.rows[1:]] == [["purl", "pkg:generic/demo"]]
    assert ext_table.rows[0].cells[0].paragraphs[0].runs[0].bold
    assert "External Identifiers for this Product:" in paragraphs
    assert "$external-id-table" not in paragraphs

    assert "Header text" in paragraphs
    assert "Product: Demo 2.0" in paragraphs

    bookmarks = _bookmarks(document)
    release_bookmarks = [b for b in bookmarks if b.startswith("rel_")]
    assert len(release_bookmarks) == 2
    assert [b for b in bookmarks if b.startswith("license_")] == ["license_1"]
    assert len(set(bookmarks)) == len(bookmarks)

    links = _links(document)
    assert [text for text, _ in links[:2]] == ["Acme alpha 1.0", "Beta Corp beta 1.0"]
    assert {anchor for _, anchor in links[:2]} == set(release_bookmarks)
    assert [link for link in links if link[1] == "license_1"] == [("MIT(1)", "license_1")] * 2

    assert paragraphs.count("1: MIT") == 1
    assert "MIT text" in paragraphs
    assert "Thanks to Acme" in paragraphs
    assert "(c) Acme" in paragraphs
    assert NO_RELEASE_ERROR not in paragraphs


def test_citations_and_appendix_share_ids() -> None:
    results = [
        result("one", [lic("MIT"), lic("Apache-2.0")]),
        result("two", [lic("MIT")]),
    ]

    document = reopen(DocxGenerator().generate("disclosure", results, project()))
    links = dict((anchor, text) for text, anchor in _links(document) if anchor.startswith("license_"))
    headings = [t for t in texts(document) if t in ("1: Apache-2.0", "2: MIT")]

    assert links == {"license_1": "Apache-2.0(1)", "license_2": "MIT(2)"}
    assert headings == ["1: Apache-2.0", "2: MIT"]
    assert [b for b in _bookmarks(document) if b.startswith("license_")] == ["license_1", "license_2"]


def test_disclosure_without_external_ids_drops_markers() -> None:
    document = reopen(DocxGenerator().generate("disclosure", [result("one", [lic("MIT")])], project()))

    assert document.tables == []
    assert not any("$caption-extid-table" in t or "$external-id-table" in t for t in texts(document))


def test_failed_release_renders_error_block() -> None:
    results = [
        result("good", [lic("MIT")]),
        result("bad", [lic("GPL-2.0")], status=FAILURE, message="boom"),
    ]

    paragraphs = texts(reopen(DocxGenerator().generate("disclosure", results, project())))

    assert any(t.startswith("Error reading license information: boom") for t in paragraphs)
    assert any(t.endswith("Source file: src.tar.gz") for t in paragraphs)
    assert "GPL-2.0(1)" not in paragraphs
    assert "2: GPL-2.0" not in paragraphs


@pytest.mark.parametrize("results", [[], [None], [result("bad", [lic("MIT")], status=FAILURE)]])
def test_disclosure_without_successful_releases(results) -> None:
    document = reopen(DocxGenerator().generate("disclosure", results, project()))
    paragraphs = texts(document)

    assert paragraphs[-1] == NO_RELEASE_ERROR
    assert paragraphs.count(NO_RELEASE_ERROR) == 1
    assert "Detailed Releases Information" not in paragraphs
    assert "License texts" not in paragraphs
    assert document.tables == []


def test_license_obligations_come_from_the_catalog() -> None:
    document = load_template(BuiltinTemplateStore(), OutputVariant.DISCLOSURE)
    catalog = StaticLicenseCatalog([License("mit", ["Keep the copyright notice"])])

    DisclosurePipeline(document, license_catalog=catalog).fill(
        [result("one", [lic("MIT"), lic("BSD")])], project(), include_obligations=True,
    )
    paragraphs = texts(document)

    assert "Obligations for license MIT:" in paragraphs
    assert any(t.startswith("Keep the copyright notice") for t in paragraphs)
    assert any(t.startswith("Obligations not determined so far.") for t in paragraphs)


def test_license_catalog_failure_propagates() -> None:
    document = load_template(BuiltinTemplateStore(), OutputVariant.DISCLOSURE)
    pipeline = DisclosurePipeline(document, license_catalog=_FailingCatalog())

    with pytest.raises(UpstreamLookupError):
        pipeline.fill([result("one", [lic("MIT")])], project(), include_obligations=True)


def test_missing_external_id_marker_is_corrupt() -> None:
    generator = DocxGenerator(templates=_BytesStore(Document()))

    with pytest.raises(CorruptTemplateError):
        generator.generate("disclosure", [result("one", [lic("MIT")])], project(), external_ids={"a": "b"})


# ---------- Report ----------

R1 = Release("alpha", "1.0", "Acme", operating_systems=["Linux"], languages=["C"], id="r1")
R2 = Release("beta", "2.0", "Beta", id="r2")


def _report_project(**kwargs):
    return project(
        business_unit="BU1",
        project_owner="owner@x",
        roles={"Contributor": {"dev@x", ""}},
        obligation_fulfillment={
            ProjectObligation("Org rule", "Org text", ObligationLevel.ORGANISATION): ObligationFulfillment(True),
            ProjectObligation("Proj rule", "Proj text", ObligationLevel.PROJECT): ObligationFulfillment(False, "later"),
            ProjectObligation("Notice", "Ship notice", ObligationLevel.COMPONENT): ObligationFulfillment(True),
        },
        **kwargs,
    )


def _report_inputs():
    license_results = [
        result("beta", [lic("BSD")], vendor="Beta", version="2.0", release=R2),
        result("alpha", [lic("MIT", type="global")], vendor="Acme", version="1.0", release=R1),
    ]
    obligation_results = [
        obligation_result(obligation("T1", "A", text="X1"), obligation("T2", "A", "B", text="X2"), release=R1),
        obligation_result(
            obligation("T3", "A", text="X3"), obligation("T4", "B", text="X4"), obligation("T5", "B", text="X5"),
            release=R2,
        ),
    ]
    return license_results, obligation_results


def _generate_report(cfg=None, directory=None, obligation_status=None):
    license_results, obligation_results = _report_inputs()
    generator = DocxGenerator(
        user_directory=directory or StaticUserDirectory([User("owner@x", "Owner Name", "D1")]),
        cfg=cfg,
    )
    data = generator.generate(
        OutputVariant.REPORT, license_results, _report_project(), obligation_results,
        obligation_status=obligation_status,
    )
    return reopen(data)


def test_report_fixed_tables() -> None:
    tables = _generate_report().tables

    overview = tables[0]
    assert row_texts(overview.rows[7]) == ["owner@x", "D1", "Owner"]
    assert row_texts(overview.rows[8]) == ["dev@x", "N.A.", "Contributor"]
    assert len(overview.rows) == 9

    assert [row_texts(r) for r in tables[1].rows[1:3]] == [["T1", "A", "X1"], ["T2", "A B", "X2"]]
    assert len(tables[1].rows) == 6
    assert [row_texts(r) for r in tables[2].rows[1:]] == [
        ["alpha", "Linux", "C", "N/A"],
        ["beta", "N/A", "N/A", "N/A"],
    ]
    assert [row_texts(r)[0] for r in tables[3].rows[1:]] == ["alpha", "beta"]
    assert row_texts(tables[3].rows[1])[5] == "MIT"
    assert [row_texts(r) for r in tables[4].rows[1:]] == [["Org text", "yes", ""]]
    assert [row_texts(r) for r in tables[5].rows[1:]] == [["Proj text", "no", "later"]]


def test_report_tokens() -> None:
    paragraphs = texts(_generate_report())

    assert "Licenses with frequent obligations: A, B" in paragraphs
    assert paragraphs.count(NO_COMMERCIAL_3RD_PARTY) == 2
    assert "BU1" in paragraphs
    assert not any("$" in t for t in paragraphs)


def test_report_injects_one_table_per_license_group() -> None:
    tables = _generate_report().tables

    assert len(tables) == 12
    assert [row_texts(r) for r in tables[6].rows[1:]] == [
        ["T3", "A", "X3", "", ""],
        ["T5", "B", "X5", "", ""],
    ]
    group_a, group_b = tables[7], tables[8]
    assert row_texts(group_a.rows[0]) == OBLIGATION_TABLE_HEADERS
    assert [row_texts(r) for r in group_a.rows[1:]] == [
        ["T3", "A", "X3", "", ""],
        ["Notice", "A", "Ship notice", "yes", ""],
    ]
    assert row_texts(group_b.rows[1]) == ["T5", "B", "X5", "", ""]

    status = tables[-1]
    assert len(status.rows) == 2
    assert status.rows[1].cells[0].text == NO_LINKED_OBLIGATIONS
    assert len(status.rows[1]._tr.tc_lst) == 1


def test_report_keep_all_policy_and_threshold() -> None:
    keep_all = AppConfig(obligations=ObligationConfig(grouping_policy="keep_all"))
    tables = _generate_report(cfg=keep_all).tables
    assert [row_texts(r)[0] for r in tables[7].rows[1:]] == ["T1", "T2", "T3", "Notice"]

    strict = AppConfig(obligations=ObligationConfig(common_license_threshold=4))
    tables = _generate_report(cfg=strict).tables
    assert len(tables) == 10
    assert len(tables[6].rows) == 1
    assert tables[-1].rows[1].cells[0].text == NO_LINKED_OBLIGATIONS


def test_report_component_subsections_follow_the_group_tables() -> None:
    document = _generate_report()
    body = list(document.element.body)
    paragraphs = {p.text: p for p in document.paragraphs}

    alpha = paragraphs["Acme alpha"]
    assert alpha.style.name == "Heading 3"
    assert "The component is licensed under MIT." in paragraphs
    assert "The component is licensed under Unknown." in paragraphs

    tables = document.tables
    assert body.index(tables[8]._tbl) < body.index(alpha._p) < body.index(tables[9]._tbl)
    assert [row_texts(r) for r in tables[9].rows] == [["T1", "A", "X1"], ["T2", "A B", "X2"]]
    assert len(tables[10].rows) == 3
    assert body.index(tables[10]._tbl) < body.index(paragraphs["Linked obligations"]._p)


def test_report_linked_obligations() -> None:
    status = {
        "Provide notice": ObligationStatusInfo("Ship NOTICE", ["A", "B"], [R1], "OPEN", "RISK", "c"),
        "Unlinked": ObligationStatusInfo("ignored", ["A"], None),
    }

    table = _generate_report(obligation_status=status).tables[-1]

    assert len(table.rows) == 3
    assert row_texts(table.rows[1]) == ["Provide notice", "A, \nB", "Acme alpha 1.0", "OPEN", "RISK", "c"]
    assert table.rows[2].cells[0].text == "Ship NOTICE"


def test_report_tolerates_user_lookup_failures() -> None:
    overview = _generate_report(directory=_FailingDirectory()).tables[0]

    assert row_texts(overview.rows[7]) == ["owner@x", "N.A.", "Owner"]
    assert row_texts(overview.rows[8]) == ["dev@x", "N.A.", "Contributor"]


def test_report_without_successful_releases() -> None:
    _, obligation_results = _report_inputs()
    data = DocxGenerator().generate(
        "report", [result("bad", [lic("MIT")], status=FAILURE)], _report_project(), obligation_results,
    )
    document = reopen(data)
    paragraphs = texts(document)

    assert paragraphs[-1] == NO_RELEASE_ERROR
    assert paragraphs.count(NO_RELEASE_ERROR) == 1
    assert len(document.tables) == 8
    assert len(document.tables[1].rows) == 1


def test_report_template_with_missing_tables_is_corrupt() -> None:
    template = Document()
    for _ in range(3):
        template.add_table(rows=7, cols=3)
    generator = DocxGenerator(templates=_BytesStore(template))
    license_results, obligation_results = _report_inputs()

    with pytest.raises(CorruptTemplateError):
        generator.generate("report", license_results, _report_project(), obligation_results)


# ---------- Failure surfacing ----------

def test_missing_template_surfaces_as_generation_error(tmp_path) -> None:
    generator = DocxGenerator(templates=DirectoryTemplateStore(tmp_path))

    with pytest.raises(TemplateLoadError) as excinfo:
        generator.generate("report", [], project())
    assert isinstance(excinfo.value, GenerationError)


def test_serialization_failure(monkeypatch) -> None:
    def broken(document):
        raise OSError("disk full")

    monkeypatch.setattr(docx_generator, "document_bytes", broken)

    with pytest.raises(SerializationError):
        DocxGenerator().generate("disclosure", [result("one", [lic("MIT")])], project())


def test_generations_do_not_share_state() -> None:
    generator = DocxGenerator()
    first = reopen(generator.generate("disclosure", [result("one", [lic("MIT")])], project(name="First")))
    second = reopen(generator.generate("disclosure", [result("two", [lic("BSD")])], project(name="Second")))

    assert "1: MIT" in texts(first)
    assert "1: BSD" in texts(second)
    assert "1: MIT" not in texts(second)
    assert not any("First" in t for t in texts(second))


def _report_template_without_status_columns():
    template = build_report_template()
    tbl = template.tables[ReportTable.OBLIGATION_STATUS]._tbl
    for tr in tbl.tr_lst:
        tbl.remove(tr)
    for grid_col in tbl.tblGrid.gridCol_lst:
        tbl.tblGrid.remove(grid_col)
    return template


def test_zero_column_status_table_is_corrupt() -> None:
    generator = DocxGenerator(templates=_BytesStore(_report_template_without_status_columns()))

    with pytest.raises(CorruptTemplateError):
        generator.generate("report", [result("one", [lic("MIT")])], project())


def test_merge_row_needs_cells() -> None:
    table = _report_template_without_status_columns().tables[ReportTable.OBLIGATION_STATUS]

    with pytest.raises(CorruptTemplateError):
        merge_row(table.add_row())


def test_document_model_errors_become_corrupt_template(monkeypatch) -> None:
    def broken(table, start, rows):
        raise IndexError("row index out of range")

    monkeypatch.setattr(report, "insert_rows", broken)

    with pytest.raises(CorruptTemplateError) as excinfo:
        DocxGenerator().generate("report", [result("one", [lic("MIT")])], project())
    assert isinstance(excinfo.value.__cause__, IndexError)


def test_layout_contract_violations_are_not_converted(monkeypatch) -> None:
    def out_of_order(self, *args, **kwargs):
        PendingLayout().resolve(ReportTable.OBLIGATION_STATUS)

    monkeypatch.setattr(report.ReportPipeline, "fill", out_of_order)

    with pytest.raises(LayoutContractError):
        DocxGenerator().generate("report", [result("one", [lic("MIT")])], project())
