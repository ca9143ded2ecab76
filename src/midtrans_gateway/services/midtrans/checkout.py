"""Snap checkout widget markup for popup and embedded payment modes."""

from __future__ import annotations

import html
import json
from dataclasses import dataclass

from .config import MidtransGatewayConfig

SNAP_CONTAINER_ID = "snap-container"


@dataclass(slots=True)
class CheckoutWidget:
    mode: str
    html: str


def _attr(value: str) -> str:
    return html.escape(value, quote=True)


def _js(value: str) -> str:
    # JSON string literals are valid JS; "</" is split so a value cannot close the script tag.
    return json.dumps(value).replace("</", "<\\/")


def _callbacks(redirect_url: str) -> str:
    target = _js(redirect_url)
    return (
        f"onSuccess: function(result){{ window.location.href = {target}; }},\n"
        f"        onPending: function(result){{ window.location.href = {target}; }},\n"
        f"        onError: function(result){{ window.location.href = {target}; }},\n"
        f"        onClose: function(){{ window.location.href = {target}; }}"
    )


def _snap_script(config: MidtransGatewayConfig) -> str:
    return (
        f"<script type=\"text/javascript\" src=\"{_attr(config.snap_js_url)}\" "
        f"data-client-key=\"{_attr(config.active_client_key)}\"></script>"
    )


def render_popup(config: MidtransGatewayConfig, token: str, redirect_url: str) -> str:
    """Pay button that opens the Snap popup; every outcome returns to the invoice."""

    return f"""
{_snap_script(config)}
<button id="pay-button" type="button">Pay Now</button>
<script type="text/javascript">
  document.getElementById("pay-button").addEventListener("click", function () {{
    window.snap.pay({_js(token)}, {{
        {_callbacks(redirect_url)}
    }});
  }});
</script>
""".strip()


def render_embedded(config: MidtransGatewayConfig, token: str, redirect_url: str) -> str:
    """Snap payment form rendered inline in ``#snap-container``."""

    return f"""
<div id="{SNAP_CONTAINER_ID}" style="width: 100%; height: 600px;"></div>
{_snap_script(config)}
<script type="text/javascript">
  window.snap.embed({_js(token)}, {{
        embedId: {_js(SNAP_CONTAINER_ID)},
        {_callbacks(redirect_url)}
  }});
</script>
""".strip()


def render_checkout(config: MidtransGatewayConfig, token: str, redirect_url: str) -> CheckoutWidget:
    if config.payment_mode == "popup":
        markup = render_popup(config, token, redirect_url)
    else:
        markup = render_embedded(config, token, redirect_url)
    return CheckoutWidget(mode=config.payment_mode, html=markup)


__all__ = ["CheckoutWidget", "render_checkout", "render_embedded", "render_popup"]
