"""JavaScript expressions evaluated in tab pages.

Caller-supplied selectors are always passed through ``json.dumps`` before
being spliced into a script so quotes cannot break out of the literal.
"""

import json

LOCATION_HREF_JS = "window.location.href"

DOCUMENT_TITLE_JS = "document.title"

FOCUS_AND_CLEAR_OK = "ok"
FOCUS_AND_CLEAR_NOT_FOUND = "not_found"


def focus_and_clear_js(selector: str) -> str:
    """Generate JS that focuses an element and empties it.

    Handles both form controls (``value``) and ``contentEditable`` hosts.
    Evaluates to ``"ok"`` or ``"not_found"``.
    """
    sel_json = json.dumps(selector)
    return f"""
    (() => {{
      const el = document.querySelector({sel_json});
      if (!el) {{ return "{FOCUS_AND_CLEAR_NOT_FOUND}"; }}
      el.focus();
      if ("value" in el) {{
        el.value = "";
        el.setAttribute("value", "");
      }} else if (el.isContentEditable) {{
        el.textContent = "";
      }}
      return "{FOCUS_AND_CLEAR_OK}";
    }})()
    """


def humanize_js() -> str:
    """Generate JS that nudges window size, scroll and pointer like a person would."""
    return """
    (() => {
      if (window.innerWidth > 800) {
        window.resizeTo(
          window.innerWidth + Math.floor(Math.random() * 100) - 50,
          window.innerHeight + Math.floor(Math.random() * 100) - 50
        );
      }
      window.scrollTo(0, Math.floor(Math.random() * 100));
      Object.defineProperty(navigator, 'hardwareConcurrency', {
        get: () => Math.floor(Math.random() * 8) + 4
      });
      document.dispatchEvent(new MouseEvent('mousemove', {
        clientX: Math.random() * window.innerWidth,
        clientY: Math.random() * window.innerHeight
      }));
      return true;
    })()
    """
