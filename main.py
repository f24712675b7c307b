from dotenv import load_dotenv

from core.CodingContext import CodingContext
from core.document import CodingDocument
from core.segment import PdfRegion
from utils.formatting import to_markdown

load_dotenv()

if __name__ == '__main__':
    context = CodingContext("demo")
    doc = context.add_document(CodingDocument(doc_id="doc_1", content="The quick brown fox jumps over the lazy dog"))
    context.add_code("animal", "Animal", "#e07a5f")
    context.add_code("motion", "Motion", "#3d405b")

    context.apply_code(doc.doc_id, 16, 19, "animal")
    context.apply_code(doc.doc_id, 20, 25, "motion")
    # imprecise re-selection of "fox" snaps onto the existing segment and removes the code
    # context.apply_code(doc.doc_id, 16, 20, "animal")
    context.apply_code(doc.doc_id, 40, 43, "animal")
    print(to_markdown(doc, context.segments, context.codes))

    region = PdfRegion.from_raw(2, 0.10, 0.20, 0.30, 0.05)
    context.apply_code_to_region(doc.doc_id, region, "animal")
    for segment in context.segments:
        print(segment.to_dict())
