import io
import logging

import pandas as pd
import streamlit as st

from trend_calendar.config_manager import get_config
from trend_calendar.data_processing import (
    available_periods,
    calculate_dataset_statistics,
    calculate_gender_stats,
    load_keyword_dataset
)
from trend_calendar.exceptions import DatasetError, InsightValidationError
from trend_calendar.insights import (
    COMPARISON_FALLBACK,
    InsightSession,
    InsightState,
    handle_insight_request,
    prepare_keyword_payloads
)
from trend_calendar.keyword_classifier import classify
from trend_calendar.models import KeywordCategory
from trend_calendar.trend_calculator import rank_keywords, round_half_up
from trend_calendar.visualization import (
    create_age_distribution_chart,
    create_trend_chart,
    get_keyword_color,
    with_alpha
)

config = get_config()

# Configure logging for debugging
logging.basicConfig(format="%(asctime)s [%(levelname)s] %(message)s",
                    level=config.get('logging', {}).get('level', 'INFO'))


@st.cache_data
def load_dataset_from_path(path):
    """Load the bundled dataset once per path."""
    return load_keyword_dataset(path)


@st.cache_data
def load_dataset_from_upload(data: bytes):
    """Load an uploaded CSV once per file content."""
    return load_keyword_dataset(io.BytesIO(data))


def render_keyword_badges(keywords):
    """Coloured pills for the current selection."""
    badges = []
    for idx, keyword in enumerate(keywords):
        color = get_keyword_color(idx)
        badges.append(
            f"<span style='color:{color};border:1px solid {with_alpha(color, 0.4)};"
            f"background:{with_alpha(color, 0.08)};border-radius:999px;padding:2px 10px;"
            f"margin-right:6px;font-size:0.8rem'>{keyword}</span>"
        )
    st.markdown("".join(badges), unsafe_allow_html=True)


def render_insight_cards(result, keywords):
    """Per-keyword insight cards in selection order."""
    st.markdown("##### KEYWORDS INSIGHT · 선택 키워드 정량 비교")
    st.info(result.get("comparison") or COMPARISON_FALLBACK)

    items = result.get("keywordInsights", [])
    if not items:
        return
    columns = st.columns(len(items))
    for col, item in zip(columns, items):
        metrics = item["metrics"]
        idx = keywords.index(item["keyword"]) if item["keyword"] in keywords else 0
        color = get_keyword_color(idx)
        category = KeywordCategory(item.get("category", "unknown"))
        growth = metrics["growth"]
        with col:
            st.markdown(f"<h4 style='color:{color};margin-bottom:0'>{item['keyword']}</h4>",
                        unsafe_allow_html=True)
            st.caption(f"{category.display_name} · 검색량 {metrics['volume']:,}건 · "
                       f"평균 대비 {'+' if growth >= 0 else ''}{growth:.1f}%")
            st.markdown("**상승/하락 이유**")
            st.write(item["reason"])
            st.markdown("**Wonder 마케팅 전략**")
            st.write(item["strategy"])


# -------------------------------------------
# MAIN APPLICATION
# -------------------------------------------
def main():
    st.set_page_config(page_title="Wonder 검색 트렌드 캘린더", layout="wide")

    st.title("Wonder 검색 트렌드 캘린더")
    st.markdown("""
    월별 키워드 검색량을 평균 대비 상승률로 정렬하고, 선택한 키워드(최대 3개)에 대해
    보험·부업 관점의 AI 마케팅 인사이트를 생성합니다.
    """)

    ranking_config = config.get('ranking', {})
    max_keywords = config.get('insights', {}).get('max_keywords', 3)

    # -------------------------------------------
    # Sidebar: data & API settings
    # -------------------------------------------
    with st.sidebar:
        st.markdown("#### 데이터")
        uploaded_file = st.file_uploader("키워드 CSV 업로드 (선택)", type=["csv"])

        st.markdown("#### API 설정")
        openai_api_key = st.text_input("OpenAI API Key", type="password",
                                       help="비워두면 OPENAI_API_KEY 환경 변수를 사용합니다.")
        serper_api_key = st.text_input("Serper API Key (선택)", type="password",
                                       help="없으면 웹 검색 없이 인사이트를 생성합니다.")

    # -------------------------------------------
    # Data Loading
    # -------------------------------------------
    try:
        with st.spinner("데이터를 불러오는 중..."):
            if uploaded_file:
                dataset = load_dataset_from_upload(uploaded_file.getvalue())
            else:
                dataset = load_dataset_from_path(config.get('data', {}).get('path'))
    except (DatasetError, OSError) as e:
        st.error(f"데이터를 불러오지 못했습니다: {e}")
        st.stop()

    periods = available_periods(dataset)
    if not periods:
        st.error("데이터에 월별 검색량이 없습니다.")
        st.stop()

    stats = calculate_dataset_statistics(dataset)
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("키워드 수", stats["total_keywords"])
    with col2:
        st.metric("데이터 기간", f"{stats['first_period']} ~ {stats['last_period']}")
    with col3:
        st.metric("총 검색량", f"{stats['total_volume']:,}")

    # -------------------------------------------
    # Calendar Selection
    # -------------------------------------------
    latest_year, latest_month = periods[-1]
    years = sorted({y for y, _ in periods})
    col1, col2 = st.columns(2)
    with col1:
        year = st.selectbox("연도", years, index=years.index(latest_year), format_func=lambda y: f"{y}년")
    months = [m for y, m in periods if y == year]
    with col2:
        default_month = latest_month if latest_month in months else months[-1]
        month = st.selectbox("월", months, index=months.index(default_month), format_func=lambda m: f"{m}월")

    # -------------------------------------------
    # Keyword Ranking
    # -------------------------------------------
    ranking = rank_keywords(dataset, year, month)
    top_records = ranking[:ranking_config.get('top_n', 20)]
    top_keywords = [record.keyword for record in top_records]
    logging.info(f"Ranked {len(ranking)} keywords for {year}-{month:02d}")

    # Selection follows the top keywords whenever the month changes
    if st.session_state.get("ranking_period") != (year, month):
        st.session_state["ranking_period"] = (year, month)
        st.session_state["selected_keywords"] = top_keywords[:ranking_config.get('default_selection', 2)]
    else:
        st.session_state["selected_keywords"] = [
            k for k in st.session_state.get("selected_keywords", []) if k in top_keywords
        ]

    left, right = st.columns([1, 2.5])
    with left:
        st.subheader("Keyword")
        selected_keywords = st.multiselect(
            "AI 인사이트 비교 키워드",
            top_keywords,
            key="selected_keywords",
            max_selections=max_keywords,
        )
        if len(selected_keywords) >= max_keywords:
            st.caption(f"최대 {max_keywords}개의 키워드를 선택했습니다.")
        else:
            st.caption(f"AI 인사이트 비교는 최대 {max_keywords}개의 키워드로 진행돼요.")

        ranking_df = pd.DataFrame([{
            "순위": idx + 1,
            "키워드": record.keyword,
            "평균 대비": f"{'+' if record.growth > 0 else ''}{round_half_up(record.growth)}%",
            "검색량": f"{record.volume:,}",
            "분류": classify(record.keyword).display_name,
        } for idx, record in enumerate(top_records)])
        st.dataframe(ranking_df, hide_index=True, use_container_width=True)

    # -------------------------------------------
    # Trend Chart & Demographics
    # -------------------------------------------
    with right:
        if not selected_keywords:
            st.info("키워드를 선택해주세요")
        else:
            chart_config = config.get('chart', {})
            time_ranges = chart_config.get('time_ranges', [6, 12, 24])
            default_range = chart_config.get('default_range', 12)
            title_col, range_col = st.columns([3, 1])
            with range_col:
                time_range = st.radio("기간", time_ranges, index=time_ranges.index(default_range),
                                      format_func=lambda r: f"{r}개월", horizontal=True)
            with title_col:
                st.subheader(", ".join(f"'{k}'" for k in selected_keywords) + " 검색량 추이")

            trend_chart = create_trend_chart(dataset, selected_keywords, year, month, time_range)
            st.plotly_chart(trend_chart, use_container_width=True)

            gender = calculate_gender_stats(dataset, selected_keywords)
            g1, g2 = st.columns(2)
            with g1:
                st.metric("남성", f"{gender['male']}%")
            with g2:
                st.metric("여성", f"{gender['female']}%")

            with st.expander("키워드별 연령 분포"):
                age_chart = create_age_distribution_chart(dataset, selected_keywords)
                if age_chart:
                    st.plotly_chart(age_chart, use_container_width=True)
                else:
                    st.info("연령 데이터가 없습니다.")

    # -------------------------------------------
    # AI Insight
    # -------------------------------------------
    st.subheader("AI 인사이트")
    session = st.session_state.setdefault("insight_session", InsightSession())
    session.recover_interrupted()
    session.sync_selection(year, month, selected_keywords)

    if selected_keywords:
        render_keyword_badges(selected_keywords)
    else:
        st.caption("키워드를 선택하면 AI가 비교 인사이트를 생성해요.")

    if session.state == InsightState.IDLE:
        label = (f"{len(selected_keywords)}개 키워드 AI 인사이트 생성"
                 if selected_keywords else "키워드를 선택해주세요")
        if st.button(label, type="primary", disabled=not selected_keywords or not session.can_request,
                     use_container_width=True):
            try:
                payloads = prepare_keyword_payloads(dataset, selected_keywords, year, month)
            except InsightValidationError as e:
                st.error(str(e))
                st.stop()

            session.begin()
            try:
                with st.spinner("AI가 비교 인사이트를 정리하는 중..."):
                    status, body = handle_insight_request(
                        {"keywords": [p.to_dict() for p in payloads], "year": year, "month": month},
                        openai_api_key=openai_api_key or None,
                        serper_api_key=serper_api_key or None,
                    )
            except Exception as e:
                session.fail(f"AI 인사이트 생성 중 문제가 발생했습니다: {e}")
                raise
            if status == 200:
                session.succeed(body)
            else:
                session.fail(body.get("error") or "AI 인사이트 생성 중 문제가 발생했습니다.")

    if session.state in (InsightState.SUCCESS, InsightState.FAILED):
        col1, col2 = st.columns([4, 1])
        with col1:
            st.caption(f"{year}년 {month}월 · 최대 {max_keywords}개 키워드 비교")
        with col2:
            if st.button("다시 생성"):
                session.reset()
                st.rerun()

        if session.state == InsightState.FAILED:
            st.error(session.error_message)
        else:
            render_insight_cards(session.result, selected_keywords)

    # -------------------------------------------
    # App Footer
    # -------------------------------------------
    st.markdown("""
    ---
    ### Wonder 검색 트렌드 캘린더
    중복 선택 포함 최대 3개의 키워드까지 AI 비교 인사이트를 제공합니다.
    """)
    logging.info("App execution completed successfully.")


if __name__ == "__main__":
    main()
