"""
AI Obituaries: dated "AI is overhyped / has stalled" claims plotted on the AI-progress curves.
Run: streamlit run visualize_obituaries.py
"""

import os
import time
from datetime import datetime, timedelta

import numpy as np
import plotly.graph_objects as go
import streamlit as st

from axis_ticks import build_metric_axes
from claim_positions import cluster_claims, load_claims as read_claims, position_claims, to_display, y_axis_for
from domain_animator import AnimationConfig, DateDomainAnimator, ManualFrameScheduler, ease_out_quart
from frontier_models import load_frontier_timeline, model_at
from interpolation import metrics_snapshot, normalize_value, values_at
from metric_series import COMPUTE, data_path, load_metric_store

st.set_page_config(page_title="AI Obituaries", layout="wide")

_FRAME_S = 1 / 60
_CURVE_SAMPLES = 300
_CHART_HEIGHT = 600
# Nominal plot width in px for clustering; the real width follows the container
_CHART_WIDTH = 1100


# ── Data loading ─────────────────────────────────────────────────────────

def _mtime(env_var, filename):
    return os.path.getmtime(data_path(env_var, filename))


# Same store object on every rerun: each series holds its own timestamp cache
@st.cache_resource
def load_data(_metrics_mtime=None, _frontier_mtime=None):
    return load_metric_store(), load_frontier_timeline()


@st.cache_data
def load_claims(_mtime=None):
    return read_claims()


store, frontier_timeline = load_data(
    _metrics_mtime=_mtime('OBITUARY_METRICS_PATH', 'ai_metrics.yaml'),
    _frontier_mtime=_mtime('OBITUARY_FRONTIER_PATH', 'frontier_models.yaml'),
)
claims_all = load_claims(_mtime=_mtime('OBITUARY_CLAIMS_PATH', 'sample_claims.yaml'))
metric_axes = build_metric_axes(store)
metric_ids = [m for m in store.ids() if m in metric_axes]


# ── Helpers ──────────────────────────────────────────────────────────────

def target_window(series, start_year, end_year):
    """Visible date window: the year range, starting no earlier than the metric's data."""
    start = datetime(start_year, 1, 1)
    if series.start_date is not None and series.start_date > start:
        start = series.start_date
    end = datetime(end_year, 12, 31)
    if end <= start:
        end = start + timedelta(days=365)
    return start, end


def _sample_dates(start, end, n=_CURVE_SAMPLES):
    span = (end - start).total_seconds()
    return [start + timedelta(seconds=s) for s in np.linspace(0, span, n)]


def _claim_hover(p):
    text = f"{p['claim']['id']}<br>{p['claim']['date']:%b %d, %Y}"
    if p['model'] is not None:
        text += f"<br>Frontier: {p['model'].name} ({p['model'].org})"
    return text


def _cluster_hover(c):
    text = f"{c.count} claims<br>{c.min_date:%b %Y} to {c.max_date:%b %Y}"
    return text + "<br>" + "<br>".join(c.claim_ids)


def build_figure(series, window, overlays, start_year, end_year):
    fig = go.Figure()

    # --- Background curve ---
    curve_start = series.start_date
    curve_end = max(series.end_date, datetime(end_year, 12, 31))
    curve_dates = _sample_dates(curve_start, curve_end)
    curve_y = [to_display(series, v) for v in values_at(series, curve_dates)]
    fig.add_trace(go.Scatter(
        x=curve_dates, y=curve_y, mode='lines',
        line=dict(color=series.color or '#4F8DFD', width=3),
        name=series.label, hoverinfo='skip',
    ))

    # --- Normalised overlays on a secondary 0-1 axis ---
    for other_id in overlays:
        other = store.get(other_id)
        if other.is_empty:
            continue
        other_dates = _sample_dates(other.start_date, curve_end)
        norm = [normalize_value(other, v) for v in values_at(other, other_dates)]
        fig.add_trace(go.Scatter(
            x=other_dates, y=norm, mode='lines', yaxis='y2',
            line=dict(color=other.color or '#999999', width=1.5, dash='dot'),
            opacity=0.6, name=f"{other.label} (normalised)", hoverinfo='skip',
        ))

    # --- Claims, clustered when zoomed out ---
    axis = y_axis_for(store, metric_axes, series, overlays,
                      datetime(start_year, 1, 1), datetime(end_year, 12, 31))
    pts = position_claims(store, series, claims_all, axis, window, frontier_timeline,
                          _CHART_WIDTH, _CHART_HEIGHT)
    clusters, singles = cluster_claims(pts, axis, window, _CHART_WIDTH, _CHART_HEIGHT)
    if singles:
        fig.add_trace(go.Scatter(
            x=[p['claim']['date'] for p in singles], y=[p['y'] for p in singles],
            mode='markers',
            marker=dict(color='#C9A962', size=10, line=dict(color='white', width=1)),
            hovertext=[_claim_hover(p) for p in singles], hoverinfo='text', name='Obituaries',
        ))
    if clusters:
        fig.add_trace(go.Scatter(
            x=[c['date'] for c in clusters], y=[c['y'] for c in clusters],
            mode='markers+text',
            marker=dict(color='#C9A962', size=[14 + 2 * c['cluster'].count for c in clusters],
                        opacity=0.8, line=dict(color='white', width=1)),
            text=[str(c['cluster'].count) for c in clusters], textposition='middle center',
            hovertext=[_cluster_hover(c['cluster']) for c in clusters], hoverinfo='text',
            name='Obituary clusters',
        ))

    # --- Y axis ---
    if axis.log:
        yaxis_cfg = dict(type='log', range=[np.log10(axis.domain[0]), np.log10(axis.domain[1])])
    else:
        yaxis_cfg = dict(range=list(axis.domain))
    yaxis_cfg.update(
        tickvals=axis.tick_values,
        ticktext=axis.tick_text,
        title=axis.title,
        gridcolor='rgba(0,0,0,0.1)',
        zeroline=False,
        tickfont=dict(color='#1a1a2e'),
        title_font=dict(color='#1a1a2e'),
    )

    fig.update_layout(
        height=_CHART_HEIGHT,
        margin=dict(l=60, r=40, t=40, b=40),
        font=dict(color='#1a1a2e'),
        xaxis=dict(
            range=list(window),
            gridcolor='rgba(0,0,0,0.1)',
            tickfont=dict(color='#1a1a2e'),
            zeroline=False,
        ),
        yaxis=yaxis_cfg,
        yaxis2=dict(overlaying='y', side='right', range=[0, 1], showgrid=False,
                    showticklabels=False, visible=bool(overlays)),
        legend=dict(yanchor='top', y=0.99, xanchor='left', x=0.01,
                    bgcolor='rgba(255,255,255,0.95)',
                    font=dict(color='#1a1a2e')),
        plot_bgcolor='white',
        paper_bgcolor='white',
    )
    return fig


# ── Sidebar ──────────────────────────────────────────────────────────────

_url_metric = st.query_params.get("metric", COMPUTE).lower()
_default_metric_idx = metric_ids.index(_url_metric) if _url_metric in metric_ids else 0
_url_reduced = st.query_params.get("reduced_motion", "").lower() in ("1", "true", "yes")

with st.sidebar:
    st.header("AI Obituaries")
    active_metric = st.radio(
        "Metric", metric_ids, index=_default_metric_idx,
        format_func=lambda m: store.get(m).label, key="metric")
    min_year, max_year = store.min_data_year(), store.max_data_year()
    start_year, end_year = st.slider(
        "Years", min_value=min_year, max_value=max_year,
        value=(max(min_year, 2010), max_year), key="years")
    overlays = st.multiselect(
        "Overlay metrics (normalised)", [m for m in metric_ids if m != active_metric],
        format_func=lambda m: store.get(m).label, key="overlays")
    reduced_motion = st.toggle("Reduce motion", value=_url_reduced, key="reduced_motion")

st.query_params["metric"] = active_metric


# ── Chart ────────────────────────────────────────────────────────────────

def render_chart():
    series = store.get(active_metric)
    target = target_window(series, start_year, end_year)

    scheduler = ManualFrameScheduler()
    config = AnimationConfig(reduced_motion=reduced_motion, easing=ease_out_quart)
    previous = st.session_state.get('_x_window', target)
    placeholder = st.empty()

    with DateDomainAnimator(previous, scheduler, config=config) as animator:
        animator.set_target(target)
        frame = 0
        placeholder.plotly_chart(
            build_figure(series, animator.domain, overlays, start_year, end_year),
            use_container_width=True, key=f"chart_{frame}")
        while scheduler.pending:
            time.sleep(_FRAME_S)
            scheduler.run_frame(time.monotonic() * 1000.0)
            frame += 1
            placeholder.plotly_chart(
                build_figure(series, animator.domain, overlays, start_year, end_year),
                use_container_width=True, key=f"chart_{frame}")
        st.session_state['_x_window'] = animator.domain

    snap = metrics_snapshot(store, target[1])
    parts = [f"{store.get(m).label}: {snap[m]}" for m in metric_ids
             if m != COMPUTE and snap.get(m) is not None]
    if snap.get('compute_formatted'):
        parts.insert(0, f"Training compute: {snap['compute_formatted']} FLOP")
    frontier = model_at(frontier_timeline, target[1])
    if frontier is not None:
        parts.append(f"Frontier model: {frontier.name} ({frontier.org})")
    st.caption(f"As of {target[1]:%b %Y}: " + " | ".join(parts))


render_chart()
