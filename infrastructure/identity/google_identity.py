import json
import logging

import streamlit as st
import streamlit.components.v1 as components

log = logging.getLogger(__name__)

GSI_SCRIPT_URL = "https://accounts.google.com/gsi/client"
CREDENTIAL_QUERY_PARAM = "credential"
DISABLE_AUTO_SELECT_FLAG = "gsi_disable_auto_select"


class GoogleIdentityProvider:
    """
    Google Identity Services glue. The GSI callback runs in the component
    iframe and hands the credential back to the app by reloading the parent
    page with `?credential=<token>` through `location.replace`, so the
    token-bearing URL does not add a history entry. The app strips the
    parameter on the next script run.
    """

    def __init__(self, client_id: str):
        self.client_id = client_id

    def button_html(self, disable_auto_select: bool = False) -> str:
        client_id = json.dumps(self.client_id)
        param = json.dumps(CREDENTIAL_QUERY_PARAM)
        disable = "google.accounts.id.disableAutoSelect();" if disable_auto_select else ""
        return f"""
        <div id="google-signin-button"></div>
        <script src="{GSI_SCRIPT_URL}" async defer></script>
        <script>
          function handleCredentialResponse(response) {{
            var target;
            try {{ target = window.parent.location; }} catch (e) {{ target = window.location; }}
            var url = new URL(target.href);
            url.searchParams.set({param}, response.credential);
            target.replace(url.toString());
          }}
          window.onload = function () {{
            if (!window.google) {{ return; }}
            {disable}
            google.accounts.id.initialize({{
              client_id: {client_id},
              callback: handleCredentialResponse,
              auto_select: false,
              cancel_on_tap_outside: true
            }});
            google.accounts.id.renderButton(
              document.getElementById("google-signin-button"),
              {{type: "standard", theme: "outline", size: "large", text: "signin_with", shape: "rectangular"}}
            );
          }};
        </script>
        """

    def render_button(self) -> bool:
        if not self.client_id:
            log.warning("GOOGLE_CLIENT_ID not provided. Google Sign-In is disabled.")
            return False
        disable = bool(st.session_state.get(DISABLE_AUTO_SELECT_FLAG, False))
        components.html(self.button_html(disable_auto_select=disable), height=60)
        st.session_state[DISABLE_AUTO_SELECT_FLAG] = False
        return True

    def disable_auto_select(self) -> None:
        """
        Fire-and-forget: GSI must not auto-select the account on next load.
        Sign-out reruns the script, so the instruction is carried to the next
        rendering of the button.
        """
        st.session_state[DISABLE_AUTO_SELECT_FLAG] = True
