from PyQt6.QtWidgets import QLineEdit

from tool_panel import ToolPanel

# (form key, label, placeholder, numeric) in rtgen's positional order
RTGEN_FIELDS = [
    ("hash_algorithm", "Hash Algorithm", "e.g., md5", False),
    ("charset", "Character set", "e.g., loweralpha-numeric", False),
    ("plaintext_length_min", "Minimum Plaintext Length", "e.g., 1", True),
    ("plaintext_length_max", "Maximum Plaintext Length", "e.g., 7", True),
    ("table_index", "Table Index", "e.g., 0", True),
    ("chain_length", "Chain Length", "e.g., 1000", True),
    ("chain_count", "Chain Count", "e.g., 100000", True),
    ("part_index", "Part Index", "e.g., 0", True),
]


def build_rtgen_arguments(values):
    """Returns the eight positional rtgen arguments, validating each field."""
    args = []
    for key, label, _, numeric in RTGEN_FIELDS:
        value = str(values.get(key) or "").strip()
        if not value:
            raise ValueError(f"{label} is required.")
        if numeric and not (value.isascii() and value.isdigit()):
            raise ValueError(f"{label} must be a non-negative whole number.")
        args.append(value)

    if int(values["plaintext_length_min"]) > int(values["plaintext_length_max"]):
        raise ValueError("Minimum Plaintext Length cannot be greater than Maximum Plaintext Length.")
    return args


class RtgenPanel(ToolPanel):
    title = "Rtgen"
    description = (
        "Rtgen is a tool for generating rainbow tables. These tables can be used to perform "
        "fast hash lookups during password cracking operations."
    )
    steps = (
        "=== Required ===\n"
        "Step 1: Select the hash algorithm to use (e.g., md5, sha1).\n"
        "Step 2: Input the character set used for plaintext generation (e.g., alpha-numeric).\n"
        "Step 3: Set the minimum and maximum plaintext length.\n"
        "Step 4: Specify the table index, chain length and chain count.\n"
        "Step 5: Provide the part index, then click Generate.\n"
    )
    source_link = "https://www.kali.org/tools/rainbowcrack/#rtgen"
    tutorial_link = "https://docs.google.com/document/d/1oTDlAp708Lrxhs-KwhfX9G3RgNrk2gGa1Xm7KhRnZXg/edit?usp=sharing"
    executable = "rtgen"
    privilege_elevation = True
    dependencies = ["rtgen"]
    submit_label = "Generate Rtgen"
    output_file_name = "rtgen_output.txt"

    def _build_form(self, layout):
        for key, label, placeholder, _ in RTGEN_FIELDS:
            edit = QLineEdit()
            edit.setPlaceholderText(placeholder)
            self.controls[key] = edit
            layout.addRow(f"{label}:", edit)

    def form_values(self):
        return {key: self.controls[key].text() for key, _, _, _ in RTGEN_FIELDS}

    def build_arguments(self, values):
        return build_rtgen_arguments(values)
