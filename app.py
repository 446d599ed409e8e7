"""
SGQ–RNC — Interactive Dashboard

Run with:  streamlit run app.py
"""

import logging
import sys
from datetime import date
from pathlib import Path

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

sys.path.insert(0, str(Path(__file__).resolve().parent))

from sgq_rnc.config import APP_TITLE, APPROVED_SECTORS, COMPANY_NAME
from sgq_rnc.dashboard import (
    VIEWS,
    get_deviation_overview,
    get_efficacy_overview,
    get_internal_overview,
    get_monthly_overview,
    get_records_table,
    get_strategic_overview,
    get_supplier_overview,
)
from sgq_rnc.loaders import parse_files
from sgq_rnc.models import RNC_TYPES
from sgq_rnc.storage import build_store
from sgq_rnc.transforms import apply_filters, build_manual_record, filter_options

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title=f"{APP_TITLE} Dashboard",
    page_icon="📋",
    layout="wide",
    initial_sidebar_state="expanded",
)

PRIMARY = "#00d46a"
CHART_COLORS = ["#00d46a", "#3b82f6", "#f59e0b", "#ef4444", "#8b5cf6"]
CARD_COLORS = {
    "primary": PRIMARY,
    "red": "#ef4444",
    "yellow": "#f59e0b",
    "blue": "#3b82f6",
}


# ---------------------------------------------------------------------------
# Store (one per server process)
# ---------------------------------------------------------------------------
def _secret_settings() -> dict:
    """Firestore settings from .streamlit/secrets.toml [firebase], if present."""
    try:
        section = st.secrets.get("firebase", {})
    except Exception:
        logger.info("No Streamlit secrets found, using environment only")
        return {}
    return {k: section.get(k) for k in ("project_id", "credentials", "collection") if section.get(k)}


@st.cache_resource
def get_store():
    store = build_store(firestore_settings=_secret_settings())
    store.load_cached()
    if not store.start_realtime():
        store.pull()
    return store


store = get_store()

for key, default in {
    "show_landing": True,
    "show_end_session": False,
    "last_saved": None,
    "f_month": "",
    "f_sector": "",
    "f_type": "",
    "f_responsible": "",
}.items():
    st.session_state.setdefault(key, default)


def clear_filters():
    for key in ("f_month", "f_sector", "f_type", "f_responsible"):
        st.session_state[key] = ""


def import_uploads(uploaded_files) -> None:
    """Parse uploaded workbooks and ingest them into the store."""
    sources = [(f.name, f.getvalue()) for f in uploaded_files]
    records, errors = parse_files(sources)

    for name, message in errors.items():
        st.error(f"Erro ao ler o arquivo {name}: {message}")

    if records:
        summary = store.ingest(records)
        st.success(
            f"Dados cadastrados: {summary['added']} novas, "
            f"{summary['updated']} atualizadas ({summary['total']} no total)"
        )
        if store.cloud_enabled and not summary["synced"]:
            st.warning("Nuvem indisponível: dados mantidos no cache local.")
    elif not errors:
        st.warning("Nenhum dado válido encontrado nos arquivos.")


# ---------------------------------------------------------------------------
# Helper: KPI card
# ---------------------------------------------------------------------------
def kpi_card(label: str, value, subtitle: str = "", color: str = "primary"):
    c = CARD_COLORS.get(color, PRIMARY)
    st.markdown(
        f"""
        <div style="background: linear-gradient(135deg, {c}22, {c}11);
                    border-left: 4px solid {c};
                    border-radius: 8px; padding: 16px; margin-bottom: 8px;">
            <div style="font-size: 13px; color: #888; font-weight: 600; text-transform: uppercase;">{label}</div>
            <div style="font-size: 28px; font-weight: 700; margin: 4px 0;">{value}</div>
            <div style="font-size: 13px; color: #666;">{subtitle}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def kpi_row(kpis: dict, prefix: str = "RNCs"):
    cols = st.columns(4)
    with cols[0]:
        kpi_card(f"{prefix} Abertas", kpis["open"], "Em andamento", "red")
    with cols[1]:
        kpi_card(f"{prefix} Fechadas", kpis["closed"], "Concluídas", "primary")
    with cols[2]:
        kpi_card("% Eficiência", f"{kpis['efficiency']:.1f}%", "Taxa de fechamento", "primary")
    with cols[3]:
        kpi_card("Tempo Médio", f"{kpis['avg_close_time']:.1f} dias", "Abertura → Fechamento", "yellow")


def bar_chart(items: list[dict], x: str = "value", y: str = "name", height: int = 350):
    df = pd.DataFrame(items)
    fig = go.Figure(go.Bar(
        x=df[x],
        y=df[y],
        orientation="h",
        marker_color=PRIMARY,
        text=df[x],
        textposition="outside",
    ))
    fig.update_layout(
        height=height,
        yaxis=dict(autorange="reversed"),
        plot_bgcolor="rgba(0,0,0,0)",
        margin=dict(l=10, r=10, t=10, b=40),
    )
    st.plotly_chart(fig, use_container_width=True)


def donut_chart(items: list[dict], colors: list[str] | None = None, height: int = 350):
    df = pd.DataFrame(items)
    fig = go.Figure(go.Pie(
        labels=df["name"],
        values=df["value"],
        hole=0.6,
        marker=dict(colors=colors or CHART_COLORS),
        textinfo="percent",
    ))
    fig.update_layout(height=height, margin=dict(l=10, r=10, t=10, b=10))
    st.plotly_chart(fig, use_container_width=True)


def monthly_area_chart(monthly: pd.DataFrame, height: int = 350):
    fig = go.Figure(go.Scatter(
        x=monthly["month"],
        y=monthly["count"],
        mode="lines+markers",
        fill="tozeroy",
        line=dict(color=PRIMARY, width=3),
        fillcolor="rgba(0, 212, 106, 0.15)",
        name="RNCs",
    ))
    fig.update_layout(
        height=height,
        yaxis_title="RNCs",
        plot_bgcolor="rgba(0,0,0,0)",
        margin=dict(l=10, r=10, t=10, b=40),
    )
    st.plotly_chart(fig, use_container_width=True)


# ===========================================================================
# LANDING
# ===========================================================================
if st.session_state["show_landing"] and store.records:
    st.session_state["show_landing"] = False

if st.session_state["show_landing"]:
    st.title(f"{COMPANY_NAME} – Sistema {APP_TITLE}")
    st.caption("Registro de Não Conformidades")

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Upload de Arquivos")
        st.caption("Selecione suas planilhas (XLSX/XLSM). Extração automática de indicadores.")
        uploads = st.file_uploader(
            "Planilhas de RNC", type=["xlsx", "xlsm"], accept_multiple_files=True,
            key="landing_upload",
        )
        if uploads and st.button("Processar arquivos", type="primary"):
            import_uploads(uploads)
    with col2:
        st.subheader("Acessar Dados Processados")
        st.caption(f"Painéis interativos com filtros globais — {len(store.records)} registros salvos")
        if st.button("Entrar no dashboard"):
            st.session_state["show_landing"] = False
            st.rerun()

    st.divider()
    st.caption(f"© {date.today().year} {COMPANY_NAME} – Sistema {APP_TITLE}")
    st.stop()


# ===========================================================================
# END SESSION
# ===========================================================================
if st.session_state["show_end_session"]:
    st.title("Encerrar Sessão")
    st.caption("Como você deseja finalizar seus trabalhos?")
    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("Sair e Salvar", type="primary", use_container_width=True):
            store.save_all()
            st.toast("Arquivos salvos com sucesso!")
            clear_filters()
            st.session_state["show_end_session"] = False
            st.session_state["show_landing"] = True
            st.rerun()
        st.caption("Mantém os dados para a próxima sessão.")
    with col2:
        if st.button("Sair e Limpar", use_container_width=True):
            store.clear()
            clear_filters()
            st.session_state["show_end_session"] = False
            st.session_state["show_landing"] = True
            st.rerun()
        st.caption("Apaga o cache local e a coleção na nuvem.")
    with col3:
        if st.button("Cancelar", use_container_width=True):
            st.session_state["show_end_session"] = False
            st.rerun()
    st.stop()


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title(APP_TITLE)
st.sidebar.markdown(f"{COMPANY_NAME} — Qualidade")
st.sidebar.divider()

page = st.sidebar.radio("Navegação", list(VIEWS.values()))

st.sidebar.divider()
st.sidebar.markdown("**AÇÕES**")
if st.sidebar.button("Salvar dados", use_container_width=True):
    synced = store.save_all()
    st.session_state["last_saved"] = pd.Timestamp.now()
    if synced or not store.cloud_enabled:
        st.sidebar.success("Arquivos salvos com sucesso!")
    else:
        st.sidebar.warning("Salvo localmente; nuvem indisponível.")
if st.session_state["last_saved"] is not None:
    st.sidebar.caption(f"Salvo às {st.session_state['last_saved']:%H:%M:%S}")
if st.sidebar.button("Encerrar sessão", use_container_width=True):
    st.session_state["show_end_session"] = True
    st.rerun()

st.sidebar.divider()
if store.cloud_enabled:
    sync_str = f"{store.last_sync:%H:%M:%S}" if store.last_sync else "—"
    st.sidebar.caption(f"Nuvem: {'sincronizando…' if store.is_syncing else 'ok'} · última sync {sync_str}")
    if store.pending:
        st.sidebar.caption(f"{len(store.pending)} registros aguardando envio")
    if store.last_error:
        st.sidebar.caption(f"Último erro: {store.last_error}")
else:
    st.sidebar.caption("Modo local (cache)")
if st.sidebar.button("Atualizar", use_container_width=True):
    if not store.is_listening:
        store.pull()
    st.rerun()


# ---------------------------------------------------------------------------
# Header: import + manual entry
# ---------------------------------------------------------------------------
with st.expander("Importar Dados"):
    uploads = st.file_uploader(
        "Planilhas de RNC", type=["xlsx", "xlsm"], accept_multiple_files=True,
        key="header_upload",
    )
    if uploads and st.button("Importar", type="primary"):
        import_uploads(uploads)

with st.expander("Nova RNC (manual)"):
    with st.form("manual_rnc", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        number = c1.text_input("Número")
        rnc_type = c2.selectbox("Tipo", RNC_TYPES)
        sector = c3.selectbox("Setor", [""] + APPROVED_SECTORS)
        description = st.text_area("Descrição")
        c1, c2, c3 = st.columns(3)
        open_date = c1.date_input("Abertura", value=date.today())
        close_date = c2.date_input("Fechamento", value=None)
        deadline = c3.date_input("Prazo", value=None)
        c1, c2, c3 = st.columns(3)
        responsible = c1.text_input("Responsável")
        supplier = c2.text_input("Fornecedor")
        product = c3.text_input("Produto")
        c1, c2 = st.columns(2)
        batch = c1.text_input("Lote")
        cause = c2.text_input("Causa")
        action = st.text_area("Ação")
        submitted = st.form_submit_button("Adicionar RNC")

    if submitted:
        if not number.strip():
            st.error("Informe o número da RNC.")
        else:
            record = build_manual_record(
                number=number, description=description, sector=sector,
                rnc_type=rnc_type, open_date=open_date, close_date=close_date,
                deadline=deadline, responsible=responsible, cause=cause,
                action=action, supplier=supplier, product=product, batch=batch,
            )
            store.ingest([record])
            st.success(f"RNC {record.number} registrada.")


# ---------------------------------------------------------------------------
# Global filters
# ---------------------------------------------------------------------------
all_records = store.records
options = filter_options(all_records)

# Drop selections that no longer exist after an import or a clear
for key, choices in (("f_month", "months"), ("f_sector", "sectors"),
                     ("f_type", "types"), ("f_responsible", "responsibles")):
    if st.session_state[key] not in options[choices]:
        st.session_state[key] = ""

fcols = st.columns([1, 1, 1, 1, 0.6])
fcols[0].selectbox("Mês", [""] + options["months"], key="f_month",
                   format_func=lambda v: v or "Mês (todos)")
fcols[1].selectbox("Setor", [""] + options["sectors"], key="f_sector",
                   format_func=lambda v: v or "Setor (todos)")
fcols[2].selectbox("Tipo", [""] + options["types"], key="f_type",
                   format_func=lambda v: v or "Tipo (todos)")
fcols[3].selectbox("Responsável", [""] + options["responsibles"], key="f_responsible",
                   format_func=lambda v: v or "Responsável (todos)")
fcols[4].button("Limpar Filtros", on_click=clear_filters)

data = apply_filters(
    all_records,
    month=st.session_state["f_month"],
    sector=st.session_state["f_sector"],
    rnc_type=st.session_state["f_type"],
    responsible=st.session_state["f_responsible"],
)
st.caption(f"{len(data)} registros processados")


# ===========================================================================
# PAGE: Visão Geral
# ===========================================================================
if page == VIEWS["general"]:
    st.title("Visão Geral")
    overview = get_strategic_overview(data)
    kpi_row(overview["kpis"])

    col1, col2 = st.columns([2, 1])
    with col1:
        st.subheader("Evolução Mensal")
        monthly_area_chart(pd.DataFrame(overview["monthly"]))
    with col2:
        st.subheader("Distribuição por Tipo")
        if overview["types"]:
            donut_chart(overview["types"])
        else:
            st.info("Sem dados.")

    col1, col2 = st.columns([2, 1])
    with col1:
        st.subheader("Top 5 Setores com Desvios")
        if overview["top_sectors"]:
            bar_chart(overview["top_sectors"])
    with col2:
        st.subheader("Status Atual")
        if overview["statuses"]:
            donut_chart(overview["statuses"])


# ===========================================================================
# PAGE: Processos Internos
# ===========================================================================
elif page == VIEWS["internal"]:
    st.title("Processos Internos")
    overview = get_internal_overview(data)
    kpi_row(overview["kpis"], prefix="Internas")

    st.subheader("RNCs por Setor")
    if overview["sectors"]:
        bar_chart(overview["sectors"], height=max(300, len(overview["sectors"]) * 35))
    else:
        st.info("Sem dados internos processados.")


# ===========================================================================
# PAGE: Fornecedores
# ===========================================================================
elif page == VIEWS["suppliers"]:
    st.title("Fornecedores")
    overview = get_supplier_overview(data)
    kpi_row(overview["kpis"], prefix="Fornecedor")

    col1, col2 = st.columns([3, 2])
    with col1:
        st.subheader("RNCs por Fornecedor")
        if overview["suppliers"]:
            bar_chart(overview["suppliers"])
        else:
            st.info("Nenhum dado de fornecedor encontrado.")
    with col2:
        st.subheader("Principais Causas")
        if overview["causes"]:
            for item in overview["causes"]:
                st.markdown(f"**{item['label']}** — {item['count']} ({item['percentage']}%)")
                st.progress(item["percentage"] / 100)
        else:
            st.info("Nenhuma causa registrada.")


# ===========================================================================
# PAGE: Eficácia & Indicadores
# ===========================================================================
elif page == VIEWS["efficacy"]:
    st.title("Eficácia & Indicadores")
    stats = get_efficacy_overview(data)

    cols = st.columns(3)
    with cols[0]:
        kpi_card("RNCs Fechadas", stats["closed"], f"de {stats['total']} registradas", "blue")
    with cols[1]:
        kpi_card("Efetivas", stats["effective"], "Fechadas dentro do prazo", "primary")
    with cols[2]:
        kpi_card("Taxa de Eficácia", f"{stats['effectiveness_rate']:.1f}%",
                 f"{stats['not_effective']} não efetivas", "yellow")

    if stats["closed"] > 0:
        donut_chart(stats["chart"], colors=[c["color"] for c in stats["chart"]])
    else:
        st.info("Sem dados de fechamento.")


# ===========================================================================
# PAGE: Painel Mensal
# ===========================================================================
elif page == VIEWS["monthly"]:
    st.title("Painel Mensal")
    monthly = get_monthly_overview(data)
    monthly_area_chart(monthly, height=450)
    st.dataframe(monthly, use_container_width=True, hide_index=True)


# ===========================================================================
# PAGE: Desvios por Processo
# ===========================================================================
elif page == VIEWS["deviation"]:
    st.title("Desvios por Processo")
    st.caption("Painel Interativo de Indicadores")
    overview = get_deviation_overview(data)
    kpis = overview["kpis"]

    cols = st.columns(4)
    with cols[0]:
        kpi_card("Desvios Registrados", kpis["total"])
    with cols[1]:
        kpi_card("Desvios Fechados", kpis["closed"])
    with cols[2]:
        kpi_card("% Eficiência", f"{kpis['efficiency']}%")
    with cols[3]:
        kpi_card("Tempo Médio", f"{kpis['avg_days']:.1f}d", color="yellow")

    if overview["ishikawa"]:
        ishikawa = pd.DataFrame(overview["ishikawa"])
        col1, col2 = st.columns([2, 1])
        with col1:
            st.subheader("Causas (Ishikawa 6M)")
            fig = px.bar(
                ishikawa, x="name", y="value", color="name",
                color_discrete_map=dict(zip(ishikawa["name"], ishikawa["color"])),
            )
            fig.update_layout(showlegend=False, height=350, xaxis_title="", yaxis_title="RNCs",
                              plot_bgcolor="rgba(0,0,0,0)")
            st.plotly_chart(fig, use_container_width=True)
        with col2:
            st.subheader("Distribuição")
            donut_chart(overview["ishikawa"], colors=list(ishikawa["color"]))

        st.subheader("Principais Ocorrências")
        for occ in overview["top_occurrences"]:
            st.markdown(
                f"<div style='border-left: 3px solid {occ['color']}; padding: 4px 8px; margin: 4px 0;'>"
                f"<b>{occ['number']}</b> · {occ['category']} — {occ['description']}</div>",
                unsafe_allow_html=True,
            )

    st.subheader("Registros")
    st.dataframe(overview["table"], use_container_width=True, hide_index=True)


# ===========================================================================
# PAGE: Registros
# ===========================================================================
elif page == VIEWS["table"]:
    st.title("Registros")
    table = get_records_table(data)
    st.dataframe(table, use_container_width=True, hide_index=True)
    st.download_button(
        "Exportar CSV",
        table.to_csv(index=False).encode("utf-8"),
        "rncs.csv",
        mime="text/csv",
    )


st.divider()
st.caption(f"© {date.today().year} {COMPANY_NAME} — SGQ System")
