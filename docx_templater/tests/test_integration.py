"""
Integration tests for the create and render commands.

A DOCX is assembled on disk, turned into templates with ``create``, and
rendered back with ``render``.
"""

import json
import tempfile
import unittest
import zipfile
from pathlib import Path

from docx_templater.main import create_templates, main, render_document
from docx_templater.parser.docx_loader import DOCUMENT_XML_PATH, read_body
from docx_templater.utils.errors import TemplateSyntaxError

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
SECT_PR = '<w:sectPr><w:pgSz w:w="12240" w:h="15840"/></w:sectPr>'
IMAGE_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(200))


def paragraph(text: str) -> str:
    return f"<w:p><w:r><w:t>{text}</w:t></w:r></w:p>"


def build_document(*children: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
        f'<w:document xmlns:w="{W_NS}"><w:body>{"".join(children)}{SECT_PR}</w:body></w:document>'
    )


LETTER_DOCUMENT = build_document(
    paragraph("Not part of any block"),
    paragraph("#! BLOCK: letter"),
    # Word split the placeholder across three runs.
    "<w:p><w:r><w:t>Dear {{</w:t></w:r><w:r><w:rPr><w:b/></w:rPr><w:t>cust</w:t></w:r>"
    "<w:r><w:t>omer.name }},</w:t></w:r></w:p>",
    paragraph("#! ENDBLOCK"),
    paragraph("#! BLOCK: items"),
    paragraph("#!{% for item in order.items %}"),
    paragraph("{{ item.title }}: {{ item.price }}"),
    paragraph("#!{% endfor %}"),
    paragraph("#! ENDBLOCK"),
)


def write_docx(path: Path, document_xml: str) -> Path:
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as docx_zip:
        docx_zip.writestr("[Content_Types].xml", "<Types/>")
        docx_zip.writestr(DOCUMENT_XML_PATH, document_xml)
        docx_zip.writestr("word/media/image1.png", IMAGE_BYTES)
    return path


class PipelineTest(unittest.TestCase):
    """End-to-end create and render through the public entry points."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp = Path(self._tmp.name)
        self.docx = write_docx(self.tmp / "letter.docx", LETTER_DOCUMENT)
        self.out = self.tmp / "templates"

    def test_create_writes_fragments_and_schemas(self) -> None:
        schemas = create_templates(self.docx, self.out)

        self.assertEqual([schema.block_name for schema in schemas], ["letter", "items"])
        self.assertEqual(
            (self.out / "letter.xml").read_text(encoding="utf-8"),
            "<w:p><w:r><w:t>Dear {{ customer.name }},</w:t></w:r></w:p>",
        )
        self.assertEqual(
            (self.out / "items.xml").read_text(encoding="utf-8"),
            "{% for item in order.items %}\n" + paragraph("{{ item.title }}: {{ item.price }}") + "\n{% endfor %}",
        )

        payload = json.loads((self.out / "schemas.json").read_text(encoding="utf-8"))
        self.assertEqual(
            payload[0],
            {
                "block_name": "letter",
                "block_data_type": {
                    "kind": "Object",
                    "properties": {"customer": {"kind": "Object", "properties": {"name": {"kind": "String"}}}},
                },
            },
        )
        self.assertEqual(schemas[1].to_dict(), payload[1])
        item = schemas[1].block_data_type.properties["order"].properties["items"].element_type
        self.assertEqual(set(item.properties), {"title", "price"})

    def test_render_replaces_body_and_keeps_other_members(self) -> None:
        create_templates(self.docx, self.out)
        schema_path = self.tmp / "render.json"
        schema_path.write_text(
            json.dumps([
                {"block_name": "letter", "block_data": {"customer": {"name": "Ada"}}},
                {
                    "block_name": "items",
                    "block_data": {"order": {"items": [{"title": "Tea", "price": 3}, {"title": "Jam", "price": 5}]}},
                },
            ]),
            encoding="utf-8",
        )

        output = render_document(self.out, self.docx, schema_path)

        self.assertEqual(output, self.tmp / "rendered_letter.docx")
        body = read_body(output)
        self.assertIn(paragraph("Dear Ada,"), body)
        self.assertLess(body.index("Tea: 3"), body.index("Jam: 5"))
        self.assertNotIn("Not part of any block", body)
        self.assertNotIn("#! BLOCK", body)
        self.assertTrue(body.endswith(f"{SECT_PR}</w:body></w:document>"))
        with zipfile.ZipFile(output) as docx_zip:
            self.assertEqual(docx_zip.read("word/media/image1.png"), IMAGE_BYTES)
            self.assertEqual(docx_zip.read("[Content_Types].xml"), b"<Types/>")

    def test_create_fails_on_invalid_template_syntax(self) -> None:
        docx = write_docx(
            self.tmp / "bad.docx",
            build_document(paragraph("#! BLOCK: bad"), paragraph("#!{% for x in %}"), paragraph("#! ENDBLOCK")),
        )
        with self.assertRaises(TemplateSyntaxError):
            create_templates(docx, self.out)
        # Fragments written before the failure stay on disk.
        self.assertTrue((self.out / "bad.xml").exists())
        self.assertFalse((self.out / "schemas.json").exists())


class CommandLineTest(unittest.TestCase):
    """The argparse front-end maps failures to a non-zero exit status."""

    def test_create_and_render_commands(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            tmp_path = Path(tmp)
            docx = write_docx(tmp_path / "letter.docx", LETTER_DOCUMENT)
            out = tmp_path / "templates"
            schema = tmp_path / "render.json"
            schema.write_text('[{"block_name": "letter", "block_data": {"customer": {"name": "Bo"}}}]')

            self.assertEqual(main(["create", "--docx", str(docx), "--out", str(out)]), 0)
            self.assertTrue((out / "schemas.json").exists())
            self.assertEqual(
                main(["render", "--templates", str(out), "--docx", str(docx), "--schema", str(schema)]), 0
            )
            self.assertIn("Dear Bo,", read_body(tmp_path / "rendered_letter.docx"))

    def test_missing_docx_exits_with_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertLogs("docx_templater.main", level="ERROR"):
                status = main(["create", "--docx", str(Path(tmp) / "absent.docx"), "--out", tmp])
        self.assertEqual(status, 1)

    def test_unknown_block_exits_with_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            tmp_path = Path(tmp)
            docx = write_docx(tmp_path / "letter.docx", LETTER_DOCUMENT)
            schema = tmp_path / "render.json"
            schema.write_text('[{"block_name": "nope"}]')
            with self.assertLogs("docx_templater.main", level="ERROR"):
                status = main(["render", "--templates", tmp, "--docx", str(docx), "--schema", str(schema)])
            self.assertEqual(status, 1)
            self.assertFalse((tmp_path / "rendered_letter.docx").exists())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
