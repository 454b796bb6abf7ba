from __future__ import annotations

import html

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from studio_access.core import config
from studio_access.deps import get_access_session_ui, require_module_ui
from studio_access.services.access_session import AccessSession
from studio_access.services.permissions import MODULES, can_access_module

router = APIRouter(tags=["pages"])

_STYLE = """
    body {
      margin: 0;
      font-family: ui-sans-serif, system-ui, -apple-system, Segoe UI, Roboto, Arial;
      background: #f8fafc;
      color: #0f172a;
    }
    main { max-width: 720px; margin: 40px auto; padding: 0 20px; }
    .card { background: #fff; border: 1px solid #e2e8f0; border-radius: 16px; padding: 22px; }
    h1 { font-size: 20px; margin: 0 0 8px; }
    p { color: #64748b; font-size: 13px; }
    label { display:block; font-size: 12px; color: #64748b; margin: 12px 0 6px; }
    input, select { width: 100%; padding: 10px; border-radius: 10px; border: 1px solid #cbd5e1; }
    button { margin-top: 14px; padding: 10px 14px; border-radius: 10px; border: 0; background: #10b981; color: #fff; }
    nav a { display: inline-block; margin: 0 10px 10px 0; color: #0f172a; }
    .error { color: #dc2626; font-size: 13px; margin-top: 10px; }
"""


def _page(title: str, body: str) -> str:
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width,initial-scale=1" />
  <title>{html.escape(title)}</title>
  <style>{_STYLE}</style>
</head>
<body>
  <main>{body}</main>
</body>
</html>"""


def _login_html() -> str:
    platform = html.escape(config.PLATFORM_NAME)
    body = f"""
<div class="card">
  <h1>Sign in to {platform}</h1>
  <p>Enter your email, choose a workspace and type the code we send you.</p>
  <label for="email">Email</label>
  <input id="email" type="email" autocomplete="email" />
  <button id="lookup">Continue</button>
  <div id="workspace-step" hidden>
    <label for="workspace">Workspace</label>
    <select id="workspace"></select>
    <button id="send">Send code</button>
  </div>
  <div id="code-step" hidden>
    <label for="code">Code</label>
    <input id="code" inputmode="numeric" autocomplete="one-time-code" />
    <button id="verify">Sign in</button>
  </div>
  <div class="error" id="error"></div>
</div>
<script>
  const $ = (id) => document.getElementById(id);
  const post = (url, body) => fetch(url, {{
    method: "POST",
    headers: {{"Content-Type": "application/json"}},
    credentials: "include",
    body: JSON.stringify(body),
  }}).then((res) => res.json().then((data) => ({{ok: res.ok, data}})));

  $("lookup").onclick = async () => {{
    const {{data}} = await post("/api/auth/tenant-lookup", {{email: $("email").value}});
    const select = $("workspace");
    select.innerHTML = "";
    (data.tenants || []).forEach((t) => {{
      const option = document.createElement("option");
      option.value = t.id;
      option.textContent = t.name;
      select.appendChild(option);
    }});
    $("workspace-step").hidden = false;
  }};
  $("send").onclick = async () => {{
    await post("/api/auth/send-code", {{email: $("email").value, tenant_id: $("workspace").value}});
    $("code-step").hidden = false;
  }};
  $("verify").onclick = async () => {{
    const {{ok, data}} = await post("/api/auth/verify", {{
      email: $("email").value,
      tenant_id: $("workspace").value,
      code: $("code").value,
    }});
    if (ok) {{ window.location.href = "/"; }} else {{ $("error").textContent = data.error || "Sign in failed"; }}
  }};
</script>
"""
    return _page(f"{config.PLATFORM_NAME} Login", body)


def _nav(session: AccessSession) -> str:
    links = [
        f"<a href='/tenant/{module}'>{module.title()}</a>"
        for module in sorted(MODULES)
        if can_access_module(session, module)
    ]
    return f"<nav>{''.join(links)}</nav>"


@router.get("/login", response_class=HTMLResponse)
def login_page():
    return _login_html()


@router.get("/", response_class=HTMLResponse)
def home_page(session: AccessSession = Depends(get_access_session_ui)):
    name = html.escape(session.display_name or session.email)
    body = f"""
<div class="card">
  <h1>Welcome, {name}</h1>
  <p>Signed in as {html.escape(session.role.value)}.</p>
  {_nav(session)}
</div>
"""
    return _page(config.PLATFORM_NAME, body)


@router.get("/tenant/{module}", response_class=HTMLResponse)
def module_page(module: str, session: AccessSession = Depends(require_module_ui)):
    body = f"""
<div class="card">
  <h1>{html.escape(module.title())}</h1>
  {_nav(session)}
</div>
"""
    return _page(f"{config.PLATFORM_NAME} - {module.title()}", body)
