# app.py - Azure Policy compliance dashboard
import logging

import streamlit as st
from dotenv import load_dotenv
from pydantic import ValidationError

from config_schema import AUTH_METHODS, FIELD_LABELS, OPTIONAL_FIELDS
from config_store import ConfigStore
from dashboard import (
    TIME_RANGES,
    active_filter_count,
    apply_filters,
    compute_summary,
    empty_filters,
    highlights_frame,
    policy_highlights,
    status_distribution,
    status_distribution_figure,
    status_pie_figure,
    trend_figure,
    trend_frame,
    trend_window,
)
from mock_data import MockDataProvider
from remediation_generator import (
    GENERATION_FAILED_MESSAGE,
    RemediationError,
    RemediationInput,
    generate_remediation_steps,
    generate_word_report,
    input_errors,
)
from settings_form import SettingsForm
from sidebar import render_sidebar
from utils import format_percentage, setup_logging

load_dotenv()
setup_logging()
logger = logging.getLogger(__name__)

st.set_page_config(
    page_title="Azure Policy Compliance Dashboard",
    page_icon="🛡️",
    layout="wide"
)

# Custom CSS for better styling
st.markdown("""
<style>
.metric-card {
    background-color: #f0f2f6;
    padding: 1rem;
    border-radius: 0.5rem;
    margin: 0.5rem 0;
}
.field-error { color: #e74c3c; font-size: 0.85rem; margin-top: -0.75rem; }
</style>
""", unsafe_allow_html=True)

PLACEHOLDERS = {
    "configName": "e.g., Production subscription",
    "keyVaultUri": "e.g., https://your-keyvault-name.vault.azure.net/",
    "subscriptionId": "Enter the Azure Subscription ID (UUID)",
    "apiEndpoint": "e.g., https://management.azure.com",
    "tenantIdSecretName": "Name of secret storing Tenant ID",
    "clientIdSecretName": "Name of secret storing Client ID",
    "clientSecretName": "Name of secret storing Client Secret",
    "certificateThumbprintSecretName": "Name of secret storing Certificate Thumbprint",
    "managedIdentityClientIdSecretName": "Optional: Secret name for User-Assigned MI Client ID",
}

FIELD_HELP = {
    "apiEndpoint": "Defaults to the public Azure cloud endpoint if left blank.",
    "managedIdentityClientIdSecretName": "Only needed for a user-assigned managed identity whose Client ID is kept in Key Vault.",
}

provider = MockDataProvider()
store = ConfigStore()

if "settings_form" not in st.session_state:
    st.session_state["settings_form"] = SettingsForm.from_configurations(store.load())

st.title("🛡️ Azure Policy Compliance Dashboard")
st.caption("Compliance state, trends and AI assisted remediation for Azure Policy")

render_sidebar(store)

tab1, tab2, tab3, tab4 = st.tabs([
    "📊 Dashboard",
    "📈 Trends",
    "🩹 Remediation",
    "⚙️ Settings",
])

with tab1:
    st.header("📊 Compliance Overview")

    # Advanced filters
    filters = st.session_state.setdefault("filters", empty_filters())
    subscriptions = {s["id"]: s["displayName"] for s in provider.subscriptions()}
    initiatives = {i["id"]: i["displayName"] for i in provider.initiatives()}
    definitions = {d["id"]: d["displayName"] for d in provider.definitions()}

    with st.expander(f"🔎 Advanced Filters ({active_filter_count(filters)} active)", expanded=False):
        col1, col2, col3 = st.columns(3)
        with col1:
            filters["subscriptionId"] = st.selectbox(
                "Subscription", options=[""] + list(subscriptions),
                format_func=lambda k: subscriptions.get(k, "All subscriptions"), key="filter_subscription"
            )
        with col2:
            filters["policyInitiativeId"] = st.selectbox(
                "Policy Initiative", options=[""] + list(initiatives),
                format_func=lambda k: initiatives.get(k, "All initiatives"), key="filter_initiative"
            )
        with col3:
            filters["policyDefinitionId"] = st.selectbox(
                "Policy Definition", options=[""] + list(definitions),
                format_func=lambda k: definitions.get(k, "All policies"), key="filter_definition"
            )

        col1, col2, col3 = st.columns([2, 2, 1])
        with col1:
            filters["tagKey"] = st.text_input("Tag Key", placeholder="Filter by Tag Key (e.g., environment)",
                                              key="filter_tag_key")
        with col2:
            filters["tagValue"] = st.text_input("Tag Value", placeholder="Filter by Tag Value (e.g., production)",
                                                key="filter_tag_value", disabled=not filters["tagKey"])
        with col3:
            active = active_filter_count(filters)
            if active and st.button(f"✖️ Clear Filters ({active})"):
                for key in ("filter_subscription", "filter_initiative", "filter_definition",
                            "filter_tag_key", "filter_tag_value"):
                    st.session_state.pop(key, None)
                st.session_state["filters"] = empty_filters()
                st.rerun()

    items = apply_filters(provider.items(), filters, provider)
    summary = compute_summary(items)

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Total Resources", summary["totalResources"], help="Total resources evaluated")
    with col2:
        st.metric("Compliant Resources", summary["compliantResources"])
        st.caption(f"{format_percentage(summary['compliancePercentage'])} compliant")
    with col3:
        st.metric("Non-Compliant Resources", summary["nonCompliantResources"])
        st.caption(f"{format_percentage(summary['nonCompliancePercentage'])} non-compliant")
    with col4:
        st.metric("Overall Compliance", format_percentage(summary["compliancePercentage"]),
                  help="Based on evaluated resources")

    if not items:
        st.info("No compliance items match the selected filters.")
    else:
        col1, col2 = st.columns([3, 2])
        with col1:
            distribution = status_distribution(items)
            st.plotly_chart(status_distribution_figure(distribution), use_container_width=True)
            st.caption("Showing compliance distribution per policy initiative.")
        with col2:
            st.plotly_chart(status_pie_figure(items), use_container_width=True)

        st.subheader("🕒 Recent Policy Activity")
        st.caption("Overview of the latest policy compliance statuses.")
        st.dataframe(highlights_frame(policy_highlights(items)), use_container_width=True, hide_index=True)

with tab2:
    st.header("📈 Compliance Trends")

    col1, col2 = st.columns([3, 1])
    with col1:
        range_key = st.selectbox(
            "Time range", options=list(TIME_RANGES), index=2,
            format_func=lambda k: TIME_RANGES[k][0]
        )
    trend_df = trend_frame(trend_window(provider.trend(), range_key))
    with col2:
        st.download_button(
            "💾 Export Data",
            trend_df.to_csv(index=False),
            f"compliance_trend_{range_key}.csv",
            mime="text/csv",
            use_container_width=True
        )

    st.plotly_chart(trend_figure(trend_df), use_container_width=True)
    st.caption("Monthly trend of compliant vs. non-compliant resources.")

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Trends by Subscription")
        sub_id = st.selectbox("Select Subscription", options=list(subscriptions),
                              format_func=subscriptions.get, key="trend_subscription")
        sub_items = apply_filters(provider.items(), {"subscriptionId": sub_id}, provider)
        if sub_items:
            st.plotly_chart(status_pie_figure(sub_items, title=subscriptions[sub_id]), use_container_width=True)
        else:
            st.info("No evaluated resources in this subscription.")
    with col2:
        st.subheader("Trends by Policy Initiative")
        init_id = st.selectbox("Select Policy Initiative", options=list(initiatives),
                               format_func=initiatives.get, key="trend_initiative")
        init_items = apply_filters(provider.items(), {"policyInitiativeId": init_id}, provider)
        if init_items:
            st.plotly_chart(status_pie_figure(init_items, title=initiatives[init_id]), use_container_width=True)
        else:
            st.info("No evaluated resources for this initiative.")

with tab3:
    st.header("🩹 AI Remediation Advisor")
    st.caption("Paste a non-compliant policy and resource to draft remediation steps and an exception request.")

    field_errors = st.session_state.get("remediation_errors", {})
    with st.form("remediation_form"):
        policy_definition = st.text_area(
            "Non-Compliant Policy Definition", height=200,
            placeholder="Paste the full JSON or relevant parts of the non-compliant Azure Policy definition here..."
        )
        if field_errors.get("policyDefinition"):
            st.markdown(f"<div class='field-error'>{field_errors['policyDefinition']}</div>", unsafe_allow_html=True)
        resource_details = st.text_area(
            "Non-Compliant Resource Details", height=150,
            placeholder="Describe the non-compliant resource. Include its type, ID, current configuration, and any relevant context..."
        )
        if field_errors.get("resourceDetails"):
            st.markdown(f"<div class='field-error'>{field_errors['resourceDetails']}</div>", unsafe_allow_html=True)
        generate_btn = st.form_submit_button("✨ Generate Remediation", type="primary")

    if generate_btn:
        try:
            request = RemediationInput(policyDefinition=policy_definition, resourceDetails=resource_details)
        except ValidationError as e:
            st.session_state["remediation_errors"] = input_errors(e)
            st.rerun()
        else:
            st.session_state["remediation_errors"] = {}
            with st.spinner("Generating remediation steps..."):
                try:
                    st.session_state["remediation_output"] = generate_remediation_steps(request)
                except RemediationError:
                    st.session_state.pop("remediation_output", None)
                    st.error(GENERATION_FAILED_MESSAGE)

    output = st.session_state.get("remediation_output")
    if output:
        col1, col2 = st.columns(2)
        with col1:
            st.subheader("🛠️ Remediation Steps")
            st.markdown(output.remediation_steps)
        with col2:
            st.subheader("📝 Exception Request")
            st.markdown(output.exception_request)

        col1, col2, col3 = st.columns(3)
        with col1:
            st.download_button(
                "💾 Download Plan (Word)",
                generate_word_report(output),
                "remediation_plan.docx",
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                use_container_width=True
            )
        with col2:
            st.download_button(
                "💾 Download Steps",
                output.remediation_steps,
                "remediation_steps.md",
                mime="text/markdown",
                use_container_width=True
            )
        with col3:
            st.download_button(
                "💾 Download Exception Request",
                output.exception_request,
                "exception_request.md",
                mime="text/markdown",
                use_container_width=True
            )

with tab4:
    st.header("⚙️ Settings")
    st.subheader("🔐 Azure Data Sources (via Key Vault)")
    st.caption(
        "Configure Azure Key Vault details to fetch Azure REST API credentials. "
        "The application must have permissions (e.g., via Managed Identity) to access the specified Key Vault. "
        "Only secret names are stored, never secret values."
    )

    form: SettingsForm = st.session_state["settings_form"]

    for index, entry in enumerate(list(form.entries)):
        key = entry.widget_key
        title = entry.value("configName") or f"Configuration {index + 1}"
        with st.container(border=True):
            col1, col2 = st.columns([5, 1])
            with col1:
                st.markdown(f"**{title}**")
            with col2:
                if st.button("🗑️ Remove", key=f"{key}-remove", disabled=not form.can_remove,
                             use_container_width=True):
                    form.remove_entry(index)
                    st.rerun()

            method = st.selectbox(
                FIELD_LABELS["apiAuthMethod"], options=list(AUTH_METHODS),
                index=list(AUTH_METHODS).index(entry.auth_method),
                format_func=AUTH_METHODS.get, key=f"{key}-apiAuthMethod",
                help="Choose how the application authenticates to Azure REST APIs, using credentials from Key Vault."
            )
            if method != entry.auth_method:
                form.switch_variant(index, method)
                st.rerun()

            for name in entry.fields:
                label = FIELD_LABELS[name] + (" (optional)" if name in OPTIONAL_FIELDS else "")
                value = st.text_input(
                    label, value=entry.value(name), key=f"{key}-{name}",
                    placeholder=PLACEHOLDERS.get(name), help=FIELD_HELP.get(name)
                )
                form.set_value(index, name, value)
                error = form.field_error(index, name)
                if error:
                    st.markdown(f"<div class='field-error'>{error}</div>", unsafe_allow_html=True)

    col1, col2, col3 = st.columns([1, 1, 2])
    with col1:
        if st.button("➕ Add Configuration", use_container_width=True):
            form.add_entry()
            st.rerun()
    with col2:
        if st.button("↩️ Reload Saved", use_container_width=True):
            st.session_state["settings_form"] = SettingsForm.from_configurations(store.load())
            st.rerun()
    with col3:
        save_btn = st.button("💾 Save Settings", type="primary", use_container_width=True)

    if save_btn:
        with st.spinner("Saving..."):
            st.session_state["settings_result"] = form.submit(store)
        # rerun so field errors render beside their inputs
        st.rerun()

    result = st.session_state.pop("settings_result", None)
    if result is not None:
        if result.success:
            st.success(f"Settings Saved: {result.message}")
        else:
            st.error(result.message)

# Footer
st.divider()
col1, col2, col3 = st.columns(3)

with col1:
    st.caption("🔧 **Tech Stack:** Streamlit, Plotly, Azure OpenAI")

with col2:
    st.caption(f"📊 **Current View:** {len(provider.items())} evaluated resources")

with col3:
    st.caption("🛡️ **Scope:** Azure Policy compliance (mock data)")
