"""Initial demo project the workspace opens with."""

from __future__ import annotations

from typing import Any

INITIAL_FILE_SYSTEM: dict[str, Any] = {
    "README.md": {
        "type": "file",
        "content": "# VS Code Web Edition\n\nWelcome to your new web-based code editor!",
    },
    "src": {
        "type": "folder",
        "children": {
            "App.tsx": {
                "type": "file",
                "content": (
                    "import React from 'react';\n"
                    "\n"
                    "const App = () => {\n"
                    "  return (\n"
                    "    <div className=\"app\">\n"
                    "      <h1>Hello, World!</h1>\n"
                    "    </div>\n"
                    "  );\n"
                    "};\n"
                    "\n"
                    "export default App;\n"
                ),
            },
            "index.css": {
                "type": "file",
                "content": "body {\n  font-family: sans-serif;\n  margin: 0;\n}",
            },
        },
    },
    "package.json": {
        "type": "file",
        "content": (
            "{\n"
            '  "name": "vscode-web-clone",\n'
            '  "version": "1.0.0",\n'
            '  "description": "",\n'
            '  "main": "index.js",\n'
            '  "scripts": {\n'
            '    "start": "react-scripts start"\n'
            "  },\n"
            '  "dependencies": {\n'
            '    "react": "^18.0.0"\n'
            "  }\n"
            "}"
        ),
    },
}
