"""File templates for ``nexus-plugin init``.

Each ``render_*`` function takes the resolved ScaffoldOptions and returns the
file's full text. Literal braces in the templates are doubled for
``str.format``.
"""

from __future__ import annotations

import json
import re
from html import escape

from nexus_plugin.config import config
from nexus_plugin.types import ScaffoldOptions


def github_user(author: str) -> str:
    """Best-effort GitHub handle derived from the author name."""
    return re.sub(r"[^a-z0-9-]", "", author.lower())


def image_reference(options: ScaffoldOptions, version: str = "0.1.0") -> str:
    return (
        f"{config.image_registry}/{github_user(options.author)}"
        f"/nexus-plugin-{options.slug}:{version}"
    )


# ─── plugin.json ──────────────────────────────────────────────────────────────


def render_plugin_json(options: ScaffoldOptions) -> str:
    manifest: dict = {
        "id": options.id,
        "name": options.name,
        "version": "0.1.0",
        "description": options.description,
        "author": options.author,
        "license": config.default_license,
        "homepage": "",
        "image": image_reference(options),
        "ui": {"port": options.port, "path": "/"},
        "permissions": list(options.permissions),
        "health": {"endpoint": "/health", "interval_secs": 30},
        "env": {},
        "min_nexus_version": config.min_nexus_version,
    }

    if options.include_mcp:
        manifest["mcp"] = {
            "tools": [
                {
                    "name": "example_tool",
                    "description": f"An example tool for {options.name}",
                    "permissions": [],
                    "input_schema": {
                        "type": "object",
                        "properties": {
                            "message": {
                                "type": "string",
                                "description": "An example input parameter",
                            },
                        },
                        "required": ["message"],
                    },
                }
            ]
        }

    manifest["settings"] = []
    if options.include_settings:
        manifest["settings"].append({
            "key": "greeting",
            "type": "string",
            "label": "Greeting Text",
            "description": "Custom greeting displayed in the UI",
            "default": f"Hello from {options.name}!",
        })

    return json.dumps(manifest, indent=2, ensure_ascii=False) + "\n"


# ─── Dockerfile / .gitignore ──────────────────────────────────────────────────

_DOCKERFILE_TEMPLATE = """\
FROM node:20-alpine

WORKDIR /app

COPY src/ ./

EXPOSE {port}

CMD ["node", "server.js"]
"""

_GITIGNORE_TEMPLATE = """\
node_modules/
npm-debug.log*
.env
.env.*
.DS_Store
*.log
dist/
"""


def render_dockerfile(options: ScaffoldOptions) -> str:
    return _DOCKERFILE_TEMPLATE.format(port=options.port)


def render_gitignore(options: ScaffoldOptions) -> str:
    return _GITIGNORE_TEMPLATE


# ─── src/server.js ────────────────────────────────────────────────────────────

_MCP_HANDLER = """
  // MCP tool call handler
  if (req.method === "POST" && req.url === "/mcp/call") {{
    let body = "";
    req.on("data", (chunk) => (body += chunk));
    req.on("end", () => {{
      let result;
      try {{
        const {{ tool_name, arguments: args = {{}} }} = JSON.parse(body);
        switch (tool_name) {{
          case "example_tool":
            result = {{
              content: [{{ type: "text", text: `Received: ${{args.message || "(empty)"}}` }}],
              is_error: false,
            }};
            break;
          default:
            result = {{
              content: [{{ type: "text", text: `Unknown tool: ${{tool_name}}` }}],
              is_error: true,
            }};
        }}
      }} catch (err) {{
        result = {{
          content: [{{ type: "text", text: `Error: ${{err.message}}` }}],
          is_error: true,
        }};
      }}
      res.writeHead(200, {{ "Content-Type": "application/json" }});
      res.end(JSON.stringify(result));
    }});
    return;
  }}
"""

_SERVER_TEMPLATE = """\
const http = require("http");
const fs = require("fs");
const path = require("path");

const PORT = {port};
const NEXUS_PLUGIN_SECRET = process.env.NEXUS_PLUGIN_SECRET || "";
const NEXUS_API_URL =
  process.env.NEXUS_API_URL || "http://host.docker.internal:9600";
const NEXUS_HOST_URL =
  process.env.NEXUS_HOST_URL || "http://host.docker.internal:9600";

const publicDir = path.join(__dirname, "public");

const MIME_TYPES = {{
  ".html": "text/html",
  ".css": "text/css",
  ".js": "application/javascript",
  ".json": "application/json",
  ".png": "image/png",
  ".svg": "image/svg+xml",
}};

// ── Token Management ───────────────────────────────────────────

let cachedAccessToken = null;
let tokenExpiresAt = 0;

async function getAccessToken() {{
  if (cachedAccessToken && Date.now() < tokenExpiresAt - 30000) {{
    return cachedAccessToken;
  }}

  const res = await fetch(`${{NEXUS_HOST_URL}}/api/v1/auth/token`, {{
    method: "POST",
    headers: {{ "Content-Type": "application/json" }},
    body: JSON.stringify({{ secret: NEXUS_PLUGIN_SECRET }}),
  }});

  if (!res.ok) {{
    throw new Error(`Token exchange failed: ${{res.status}}`);
  }}

  const data = await res.json();
  cachedAccessToken = data.access_token;
  tokenExpiresAt = Date.now() + data.expires_in * 1000;
  return cachedAccessToken;
}}

// ── Server ─────────────────────────────────────────────────────

const server = http.createServer((req, res) => {{
  if (req.url === "/health") {{
    res.writeHead(200, {{ "Content-Type": "application/json" }});
    res.end(JSON.stringify({{ status: "ok" }}));
    return;
  }}

  // Frontend gets an access token + API URL from here
  if (req.url === "/api/config") {{
    getAccessToken()
      .then((token) => {{
        res.writeHead(200, {{
          "Content-Type": "application/json",
          "Access-Control-Allow-Origin": "*",
        }});
        res.end(JSON.stringify({{ token, apiUrl: NEXUS_API_URL }}));
      }})
      .catch((err) => {{
        res.writeHead(500, {{ "Content-Type": "application/json" }});
        res.end(JSON.stringify({{ error: err.message }}));
      }});
    return;
  }}
{mcp_handler}
  if (req.url === "/" || req.url === "/index.html") {{
    const html = fs
      .readFileSync(path.join(publicDir, "index.html"), "utf8")
      .split("{{{{NEXUS_API_URL}}}}")
      .join(NEXUS_API_URL);
    res.writeHead(200, {{ "Content-Type": "text/html" }});
    res.end(html);
    return;
  }}

  const fullPath = path.join(publicDir, path.normalize(req.url));
  if (!fullPath.startsWith(publicDir)) {{
    res.writeHead(403, {{ "Content-Type": "text/plain" }});
    res.end("Forbidden");
    return;
  }}
  const contentType = MIME_TYPES[path.extname(fullPath)] || "application/octet-stream";

  fs.readFile(fullPath, (err, data) => {{
    if (err) {{
      res.writeHead(404, {{ "Content-Type": "text/plain" }});
      res.end("Not Found");
      return;
    }}
    res.writeHead(200, {{ "Content-Type": contentType }});
    res.end(data);
  }});
}});

server.listen(PORT, () => {{
  console.log(`{name_js} plugin running on port ${{PORT}}`);
}});
"""


def render_server_js(options: ScaffoldOptions) -> str:
    return _SERVER_TEMPLATE.format(
        port=options.port,
        mcp_handler=_MCP_HANDLER.format() if options.include_mcp else "",
        name_js=options.name.replace("\\", "\\\\").replace("`", "\\`").replace("$", "\\$"),
    )


# ─── src/public/index.html ────────────────────────────────────────────────────

_INDEX_HTML_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{name} - Nexus Plugin</title>
  <link rel="stylesheet" href="{{{{NEXUS_API_URL}}}}/api/v1/theme.css" />
  <style>
    * {{ box-sizing: border-box; margin: 0; padding: 0; }}

    body {{
      font-family: var(--font-sans);
      background: var(--color-nx-deep);
      color: var(--color-nx-text);
      min-height: 100vh;
      -webkit-font-smoothing: antialiased;
    }}

    .app {{ max-width: 520px; margin: 0 auto; padding: 2rem 1.5rem; }}

    .header {{ text-align: center; margin-bottom: 2rem; }}
    .header h1 {{ font-size: 1.5rem; font-weight: 700; color: var(--color-nx-accent); }}
    .header .subtitle {{
      color: var(--color-nx-text-secondary);
      font-size: 0.8125rem;
      margin-top: 0.25rem;
    }}

    .card {{
      background: var(--color-nx-surface);
      border: 1px solid var(--color-nx-border);
      border-radius: var(--radius-card);
      padding: 1.25rem 1.5rem;
      margin-bottom: 1rem;
    }}
    .card-label {{
      font-size: 0.6875rem;
      font-weight: 600;
      text-transform: uppercase;
      letter-spacing: 0.06em;
      color: var(--color-nx-text-muted);
      margin-bottom: 0.5rem;
    }}
    .card-value {{ font-size: 1rem; font-weight: 500; }}

    .status-bar {{
      margin-top: 1.5rem;
      padding: 0.625rem 0.875rem;
      background: var(--color-nx-accent-muted);
      border: 1px solid var(--color-nx-border-accent);
      border-radius: var(--radius-button);
      display: flex;
      align-items: center;
      gap: 0.5rem;
      font-size: 0.75rem;
      color: var(--color-nx-accent);
      font-weight: 500;
    }}
    .status-dot {{
      width: 6px;
      height: 6px;
      border-radius: 50%;
      background: var(--color-nx-accent);
      flex-shrink: 0;
    }}

    .error-state {{
      text-align: center;
      padding: 1.25rem;
      background: var(--color-nx-error-muted);
      border: 1px solid var(--color-nx-error);
      border-radius: var(--radius-button);
      color: var(--color-nx-error);
      font-size: 0.8125rem;
    }}
  </style>
</head>
<body>
  <div class="app">
    <div class="header">
      <h1>{name}</h1>
      <p class="subtitle">{description}</p>
    </div>

    <div class="card">
      <div class="card-label">Status</div>
      <div class="card-value" id="status-text">Connecting...</div>
    </div>

    <div id="content"></div>
    <div id="status"></div>
  </div>

  <script>
    async function init() {{
      const statusText = document.getElementById("status-text");
      const statusEl = document.getElementById("status");

      try {{
        const configRes = await fetch("/api/config");
        const config = await configRes.json();

        let settings = {{}};
        try {{
          const settingsRes = await fetch(`${{config.apiUrl}}/api/v1/settings`, {{
            headers: {{ Authorization: `Bearer ${{config.token}}` }},
          }});
          if (settingsRes.ok) {{
            settings = await settingsRes.json();
          }}
        }} catch (_) {{}}

        statusText.textContent = "Connected";
        statusEl.innerHTML = `
          <div class="status-bar">
            <span class="status-dot"></span>
            Connected to Nexus
          </div>
        `;
      }} catch (err) {{
        statusText.textContent = "Disconnected";
        statusEl.textContent = `Failed to connect: ${{err.message}}`;
        statusEl.className = "error-state";
      }}
    }}

    init();
  </script>
</body>
</html>
"""


def render_index_html(options: ScaffoldOptions) -> str:
    return _INDEX_HTML_TEMPLATE.format(
        name=escape(options.name),
        description=escape(options.description),
    )


# ─── .github/workflows/docker.yml ─────────────────────────────────────────────

_DOCKER_WORKFLOW_TEMPLATE = """\
name: Build and Push Docker Image

on:
  push:
    branches: [main]
    tags: ["v*"]
  pull_request:
    branches: [main]

env:
  REGISTRY: {image_registry}
  IMAGE_NAME: ${{{{ github.repository_owner }}}}/nexus-plugin-{slug}

jobs:
  build:
    runs-on: ubuntu-latest
    permissions:
      contents: read
      packages: write

    steps:
      - uses: actions/checkout@v4

      - name: Log in to the container registry
        if: github.event_name != 'pull_request'
        uses: docker/login-action@v3
        with:
          registry: ${{{{ env.REGISTRY }}}}
          username: ${{{{ github.actor }}}}
          password: ${{{{ secrets.GITHUB_TOKEN }}}}

      - name: Extract metadata
        id: meta
        uses: docker/metadata-action@v5
        with:
          images: ${{{{ env.REGISTRY }}}}/${{{{ env.IMAGE_NAME }}}}
          tags: |
            type=semver,pattern={{{{version}}}}
            type=semver,pattern={{{{major}}}}.{{{{minor}}}}
            type=sha,prefix=
            type=raw,value=latest,enable={{{{is_default_branch}}}}

      - name: Build and push
        id: build
        uses: docker/build-push-action@v6
        with:
          context: .
          push: ${{{{ github.event_name != 'pull_request' }}}}
          tags: ${{{{ steps.meta.outputs.tags }}}}
          labels: ${{{{ steps.meta.outputs.labels }}}}

      - name: Output digest
        if: github.event_name != 'pull_request'
        env:
          DIGEST: ${{{{ steps.build.outputs.digest }}}}
        run: |
          {{
            echo "## Docker Image Published"
            echo ""
            echo "Image: ${{{{ env.REGISTRY }}}}/${{{{ env.IMAGE_NAME }}}}"
            echo "Digest: $DIGEST"
            echo ""
            echo "Add this to your plugin.json:"
            echo "    \\"image_digest\\": \\"$DIGEST\\""
          }} >> "$GITHUB_STEP_SUMMARY"

      - uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Validate manifest
        run: pipx run nexus-plugin validate . --json
        continue-on-error: true
"""


def render_docker_workflow(options: ScaffoldOptions) -> str:
    return _DOCKER_WORKFLOW_TEMPLATE.format(
        image_registry=config.image_registry,
        slug=options.slug,
    )
