import os

import streamlit as st

from config_schema import AUTH_METHODS
from config_store import ConfigStore


def render_sidebar(store: ConfigStore) -> None:
    with st.sidebar:
        st.header("🛡️ Policy Compliance")

        # Data source status (from the saved file, not the unsaved form)
        st.subheader("Data Sources")
        saved = store.saved_configurations() if store.path.exists() else []
        if saved:
            for cfg in saved:
                name = cfg.get("configName") or cfg.get("subscriptionId") or "Unnamed configuration"
                st.write(f"🔑 **{name}**")
                st.caption(AUTH_METHODS.get(cfg.get("apiAuthMethod"), "Unknown method"))
        else:
            st.info("No data sources saved yet. Configure one on the Settings tab.")

        ai_enabled = all([
            os.getenv("AZURE_OPENAI_API_KEY"),
            os.getenv("AZURE_OPENAI_ENDPOINT"),
            os.getenv("AZURE_OPENAI_DEPLOYMENT"),
        ])
        st.write(f"Remediation AI: {'✅ Enabled' if ai_enabled else '❌ Not configured'}")

        # Action buttons
        st.subheader("Actions")
        clear_data = st.button("🗑️ Clear Session Data")

        if clear_data:
            for key in list(st.session_state.keys()):
                del st.session_state[key]
            st.success("Session data cleared!")
            st.rerun()

        st.divider()
        st.subheader("ℹ️ Help")
        with st.expander("How to use this dashboard"):
            st.markdown("""
            1. **Review** overall compliance on the Dashboard tab and narrow it with the filters
            2. **Follow** month-over-month progress on the Trends tab
            3. **Paste** a non-compliant policy and resource into the Remediation tab to draft a fix
            4. **Configure** Key Vault backed data sources on the Settings tab
            """)

        with st.expander("Configuration"):
            st.markdown("""
            Set up your `.env` file with:
            ```
            AZURE_OPENAI_API_KEY=your_key
            AZURE_OPENAI_ENDPOINT=your_endpoint
            AZURE_OPENAI_DEPLOYMENT=your_deployment
            # Optional
            AZURE_OPENAI_API_VERSION=2024-12-01-preview
            LOG_DIR=logs
            LOG_LEVEL=INFO
            ```
            Data source settings are saved to `azure-data-sources.config.json`
            in the working directory. Only Key Vault **secret names** are stored.
            """)
