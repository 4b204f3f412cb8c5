"""HTML page that hosts the Iridium editor for one notebook."""

from __future__ import annotations

import json
from string import Template

from iridium.config import IridiumConfig, editor_base

_PAGE = Template("""<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <link rel="icon" href="data:," />
    <link
      rel="stylesheet"
      data-name="vs/editor/editor.main"
      href="$base/vs/editor/editor.main.css"
    />
    <script>
      var require = { paths: { vs: '$base/vs' } };
    </script>
    <script src="$base/iridium-monaco-theme.js"></script>
    <script src="$base/vs/loader.js"></script>
    <script src="$base/vs/editor/editor.main.nls.js"></script>
    <script src="$base/vs/editor/editor.main.js"></script>
    <script src="$base/vs/basic-languages/javascript/javascript.js"></script>
    <script type="module">
      monaco.editor.defineTheme('iridiumtheme', monaco_editor_theme);
      monaco.languages.typescript.javascriptDefaults.setDiagnosticsOptions({
        noSemanticValidation: true,
        noSyntaxValidation: true,
      });
    </script>
    <script src="$base/iridium.js"></script>
    $head
  </head>
  <body data-hint-view-only="IridiumViewOnly">
    <div id="iridium-root-wrapper">
      <div id="iridium-root"></div>
    </div>
    <script>
      Iridium.load = () => {
        return fetch("/read", {
          method: "POST",
          headers: { "Content-Type": "application/json" },
          body: JSON.stringify({ path: $path }),
        })
          .then((d) => {
            if (!d.ok) {
              throw new Error("Error");
            }
            return d.json();
          })
          .catch((e) => {
            console.log(e);
            return [];
          });
      };
      Iridium.save = (name, data) => {
        return fetch("/save", {
          method: "POST",
          headers: { "Content-Type": "application/json" },
          body: JSON.stringify({ content: data, path: $path }),
        }).then((d) => {
          if (!d.ok) {
            throw new Error("Error");
          }
          return true;
        });
      };
      Iridium.render(
        Iridium.html`<$${Iridium.IridiumApp} Ir=$${Iridium} />`,
        document.getElementById('iridium-root'),
      );
    </script>
    <style>
      .IridiumTitle:after {
        content: $path;
      }
    </style>
  </body>
</html>
""")


def render_viewer(notebook: str, config: IridiumConfig) -> str:
    """Render the editor page for a sanitized notebook identifier."""
    return _PAGE.substitute(base=editor_base(config), head=config.head, path=json.dumps(notebook))
