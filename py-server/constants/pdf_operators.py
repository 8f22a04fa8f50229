"""
PDF Operator Constants

Content stream operators emitted when drawing page actions.
Organized by functional category according to PDF specification.

Reference: PDF 32000-1:2008 specification, Appendix A
"""

# ==============================================================================
# Graphics State Operators (PDF spec 8.4.4)
# ==============================================================================
OP_SAVE_STATE = b'q'                 # Save graphics state
OP_RESTORE_STATE = b'Q'              # Restore graphics state
OP_CTM = b'cm'                       # Modify current transformation matrix

# ==============================================================================
# Color Operators (PDF spec 8.6.8)
# ==============================================================================
OP_SET_RGB_COLOR_FILL = b'rg'        # Set RGB color for non-stroking

# ==============================================================================
# Text Operators (PDF spec 9.3, 9.4)
# ==============================================================================
OP_BEGIN_TEXT = b'BT'            # Begin text object
OP_END_TEXT = b'ET'              # End text object
OP_SET_FONT = b'Tf'              # Set text font and size
OP_MOVE_TEXT = b'Td'             # Move text position
OP_SHOW_TEXT = b'Tj'             # Show a text string

# ==============================================================================
# XObject Operators (PDF spec 8.8)
# ==============================================================================
OP_DO_XOBJECT = b'Do'     # Invoke named XObject (image, form, etc.)

# ==============================================================================
# Path Operators (PDF spec 8.5.2, 8.5.3)
# ==============================================================================
OP_RECTANGLE = b're'      # Append rectangle
OP_FILL = b'f'            # Fill path using nonzero winding number rule
