from asciimatics.widgets import Button, Divider, DropdownList, Frame, Label, Layout

from brush import BRUSH_SIZES
from history import Tool

# Tools that start gestures on the canvas; clipboard commands are keys.
CANVAS_TOOLS = [
    Tool.PENCIL,
    Tool.ERASER,
    Tool.FILL,
    Tool.EYEDROPPER,
    Tool.LINE,
    Tool.RECTANGLE_BORDER,
    Tool.RECTANGLE_FILLED,
    Tool.CIRCLE_BORDER,
    Tool.CIRCLE_FILLED,
    Tool.SELECT,
    Tool.LASSO,
    Tool.MAGIC_WAND,
    Tool.MOVE_SELECTION,
]


# NOTE: renamed to avoid clashing with Frame.palette attribute.
class ColorPalette:
    """
    One button per palette entry; clicking picks the primary colour.
    """
    def __init__(self, frame, palette, on_color_change):
        self.frame = frame
        self.on_color_change = on_color_change
        self.colors = list(palette)

        layout = Layout([1, 1])
        self.frame.add_layout(layout)
        for i, (name, color) in enumerate(self.colors):
            button = Button(name, on_click=lambda c=color: self._select_color(c))
            layout.add_widget(button, i % 2)

    def _select_color(self, color):
        self.on_color_change(color)


class BrushSizeSelector:
    """
    Dropdown of the supported brush thicknesses.
    """

    def __init__(self, frame, on_size_change):
        self.frame = frame
        self.on_size_change = on_size_change

        layout = Layout([1])
        self.frame.add_layout(layout)

        sizes = [(str(i), i) for i in BRUSH_SIZES]

        def _on_change():
            if self.on_size_change:
                self.on_size_change(self.dropdown.value)

        self.dropdown = DropdownList(sizes, label="Brush:", on_change=_on_change)
        layout.add_widget(self.dropdown)

    def show(self, size):
        if self.dropdown.value != size:
            self.dropdown.value = size


class ToolSelector:
    def __init__(self, frame, on_tool_change):
        self.frame = frame
        self.on_tool_change = on_tool_change

        layout = Layout([1])
        self.frame.add_layout(layout)

        def _on_change():
            self.on_tool_change(self.dropdown.value)

        options = [(tool.value, tool) for tool in CANVAS_TOOLS]
        self.dropdown = DropdownList(options, label="Tool:", on_change=_on_change)
        layout.add_widget(self.dropdown)

    def show(self, tool):
        # Keyboard shortcuts change the tool behind the dropdown's back.
        if tool in CANVAS_TOOLS and self.dropdown.value != tool:
            self.dropdown.value = tool


class UIFrame(Frame):
    """
    Side panel with tool, brush and colour pickers and a status readout.
    """
    def __init__(self, screen, x, palette, on_color_change, on_size_change, on_tool_change):
        super(UIFrame, self).__init__(
            screen,
            screen.height,
            screen.width - x,
            x=x,
            y=0,
            has_border=True,
            name="UI"
        )
        # Whether the pointer is currently over the panel rather than the canvas.
        self.has_focus: bool = False

        self.tool_selector = ToolSelector(self, on_tool_change)
        self.brush_selector = BrushSizeSelector(self, on_size_change)
        layout = Layout([1])
        self.add_layout(layout)
        layout.add_widget(Divider())
        self.color_palette = ColorPalette(self, palette, on_color_change)

        status = Layout([1])
        self.add_layout(status)
        status.add_widget(Divider())
        self.status_lines = [Label("") for _ in range(4)]
        for label in self.status_lines:
            status.add_widget(label)
        self.fix()

    def show_status(self, editor, message=""):
        self.tool_selector.show(editor.tool)
        self.brush_selector.show(editor.brush_size)
        layer = editor.active_layer
        lines = [
            f"Colour: {editor.primary_color}",
            f"Layer: {layer.name if layer else '-'}",
            f"Undo {editor.history.undo_count}  Redo {editor.history.redo_count}",
            message,
        ]
        for label, line in zip(self.status_lines, lines):
            label.text = line
