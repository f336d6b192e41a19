from PyQt6.QtWidgets import QGroupBox, QVBoxLayout, QTextBrowser


def guide_html(description, steps="", source_link="", tutorial_link=""):
    parts = [f"<p>{description}</p>".replace("\n", "<br>")]
    if steps:
        parts.append("<pre>" + steps + "</pre>")
    if source_link:
        parts.append(f"<p>Source: <a href='{source_link}'>{source_link}</a></p>")
    if tutorial_link:
        parts.append(f"<p>Tutorial: <a href='{tutorial_link}'>{tutorial_link}</a></p>")
    return "".join(parts)


class UserGuideBox(QGroupBox):
    """Collapsible help text shown at the top of every tool panel."""

    def __init__(self, title, description, steps="", source_link="", tutorial_link="", parent=None):
        super().__init__(f"{title} - User Guide", parent)
        self.setCheckable(True)
        self.setChecked(False)

        layout = QVBoxLayout(self)
        self.text_browser = QTextBrowser()
        self.text_browser.setOpenExternalLinks(True)
        self.text_browser.setHtml(guide_html(description, steps, source_link, tutorial_link))
        self.text_browser.setVisible(False)
        layout.addWidget(self.text_browser)

        self.toggled.connect(self.text_browser.setVisible)
