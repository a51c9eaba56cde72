"""Layout constants shared by the builders and the serializer.

Lengths are in twips (1/1440 inch) unless the name says otherwise; font sizes
are in half-points, the unit WordprocessingML stores in ``w:sz``.
"""

FONT_NAME = "Segoe UI Semilight"
HEADER_FONT_NAME = "Segoe UI"

# RGB(0, 112, 192)
BRAND_BLUE = "0070C0"
BLACK = "000000"
BORDER_GRAY = "666666"
PLACEHOLDER_GRAY = "A0A0A0"
HEADER_SHADING = "DEEAF6"

# Heading rank -> size in half-points. Rank 1 is the document title.
HEADING_SIZES = {1: 48, 2: 28, 3: 24, 4: 22}
BODY_SIZE = 20
FOOTER_SIZE = 18

TWIPS_PER_INCH = 1440
EMU_PER_INCH = 914400

# Page geometry
MARGIN_TOP = 1440
MARGIN_RIGHT = 1440
MARGIN_BOTTOM = 1440
MARGIN_LEFT = 1440
HEADER_DISTANCE = 340
FOOTER_DISTANCE = 340
PAGE_WIDTH = 12240
PRINTABLE_WIDTH = PAGE_WIDTH - MARGIN_LEFT - MARGIN_RIGHT

# List indentation: level N sits at BASE + N * STEP with a one-step hanging indent
LIST_INDENT_BASE = 360
LIST_INDENT_STEP = 360

# Paragraph spacing presets (before, after)
SPACING_TITLE = (0, 400)
SPACING_SECTION = (240, 240)
SPACING_SUBHEADING = (120, 80)
SPACING_BODY = (0, 120)
SPACING_ITEM = (0, 80)
SPACING_SUBITEM = (0, 60)
SPACING_DETAIL = (0, 40)

# Tables (border sizes are eighths of a point)
BORDER_SIZE = 8
CELL_MARGIN = 72
HEADER_TABLE_WIDTH_PCT = 100
REVISION_TABLE_WIDTH = 3125
REVISION_COLUMN_WIDTHS = (700, 700, 750, 975)
HEADER_ROW_HEIGHTS = (500, 700)

# Image bounding boxes in EMU (width, height)
LOGO_BOX = (int(1.6 * EMU_PER_INCH), int(0.65 * EMU_PER_INCH))
WIREFRAME_BOX = (int(3.25 * EMU_PER_INCH), int(4.5 * EMU_PER_INCH))

# Right tab stop used by the footer
FOOTER_TAB_POSITION = 9360
