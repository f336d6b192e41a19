from PyQt6.QtWidgets import QLineEdit, QCheckBox

from tool_panel import ToolPanel

DEFAULT_TIMEOUT_MS = 1000


def _optional_int(values, key, label):
    text = str(values.get(key) or "").strip()
    if not text:
        return None
    if not (text.isascii() and text.isdigit()):
        raise ValueError(f"{label} must be a non-negative whole number.")
    return int(text)


def build_nbtscan_arguments(values):
    """
    Builds the nbtscan argument list from the form values.

    Basic mode only scans the subnet. Advanced mode adds the option flags and
    scans the explicit range, falling back to the subnet.
    """
    subnet = str(values.get("subnet") or "").strip()

    if not values.get("advanced"):
        if not subnet:
            raise ValueError("Please provide a target subnet to scan, e.g. 192.168.1.0/24.")
        return [subnet]

    timeout = _optional_int(values, "timeout", "Timeout Delay")
    bandwidth = _optional_int(values, "bandwidth", "Bandwidth")
    retransmits = _optional_int(values, "retransmits", "Retransmits")
    target = str(values.get("scan_range") or "").strip() or subnet
    if not target:
        raise ValueError("Please provide a range or subnet to scan.")

    args = []
    if values.get("dump_packets"):
        args.append("-d")
    if timeout:
        args.extend(["-t", str(timeout)])
    if bandwidth:
        args.extend(["-b", str(bandwidth)])
    if retransmits:
        args.extend(["-m", str(retransmits)])
    args.append(target)
    return args


class NbtscanPanel(ToolPanel):
    title = "Nbtscan Tool"
    description = (
        "Nbtscan is a command-line tool designed to scan for NetBIOS information on a network. "
        "It can help identify devices, workgroups, and NetBIOS names on a network, providing valuable "
        "information for network reconnaissance and security assessments. It is particularly useful "
        "for identifying legacy systems and applications that rely on NetBIOS."
    )
    steps = (
        "Step 1: Enter a Target Subnet to scan.\n"
        "       Eg: 192.168.1.0/24\n\n"
        "Step 2: Click Scan Subnet to start the scan.\n\n"
        "Step 3: View the Output block below to see the results.\n\n"
        "Switch to Advanced Mode for further options."
    )
    source_link = "https://www.kali.org/tools/nbtscan/"
    executable = "nbtscan"
    dependencies = ["nbtscan"]
    submit_label = "Scan Subnet"
    output_file_name = "nbtscan_output.txt"

    def _build_form(self, layout):
        controls = self.controls

        controls['subnet_edit'] = QLineEdit()
        controls['subnet_edit'].setPlaceholderText("e.g. 192.168.1.0/24")
        controls['subnet_edit'].setToolTip("The subnet to scan for NetBIOS name information.")
        layout.addRow("Subnet:", controls['subnet_edit'])

        controls['advanced_check'] = QCheckBox("Advanced Mode")
        layout.addRow(controls['advanced_check'])

        controls['dump_check'] = QCheckBox("Dump Packets Mode")
        controls['dump_check'].setToolTip("Print the whole contents of received packets (-d).")
        controls['range_edit'] = QLineEdit()
        controls['range_edit'].setPlaceholderText("Format of xxx.xxx.xxx.xxx/xx or xxx.xxx.xxx.xxx-xxx.")
        controls['timeout_edit'] = QLineEdit(str(DEFAULT_TIMEOUT_MS))
        controls['timeout_edit'].setPlaceholderText("in milliseconds; default is 1000")
        controls['bandwidth_edit'] = QLineEdit()
        controls['bandwidth_edit'].setPlaceholderText("Kilobytes per second; default is 128")
        controls['retransmits_edit'] = QLineEdit()
        controls['retransmits_edit'].setPlaceholderText("number; default is 0")

        self.advanced_widgets = [
            ("", controls['dump_check']),
            ("Range to Scan:", controls['range_edit']),
            ("Timeout Delay:", controls['timeout_edit']),
            ("Bandwidth:", controls['bandwidth_edit']),
            ("Retransmits:", controls['retransmits_edit']),
        ]
        for label, widget in self.advanced_widgets:
            if label:
                layout.addRow(label, widget)
            else:
                layout.addRow(widget)

        self.form_layout = layout
        controls['advanced_check'].toggled.connect(self._toggle_advanced)
        self._toggle_advanced(False)

    def _toggle_advanced(self, checked):
        for _, widget in self.advanced_widgets:
            self.form_layout.setRowVisible(widget, checked)

    def form_values(self):
        controls = self.controls
        return {
            "subnet": controls['subnet_edit'].text(),
            "advanced": controls['advanced_check'].isChecked(),
            "dump_packets": controls['dump_check'].isChecked(),
            "scan_range": controls['range_edit'].text(),
            "timeout": controls['timeout_edit'].text(),
            "bandwidth": controls['bandwidth_edit'].text(),
            "retransmits": controls['retransmits_edit'].text(),
        }

    def build_arguments(self, values):
        return build_nbtscan_arguments(values)
