"""
Flask web application: marketing pages with the rent, net worth impact and
leap impact calculators, plus the JSON API behind them.

Single-file app using render_template_string.  Run via ``python main.py``
which starts the dev server on localhost:5000.
"""

from __future__ import annotations

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict
from typing import Any, Dict, Mapping
from urllib.parse import urlencode

from flask import Flask, jsonify, render_template_string, request, send_file, session
from werkzeug.exceptions import HTTPException

import abtest
import analytics
import config as cfg
import impact
import leads
import leap
import market
import report
import tax
import tax_service
from cli import RentToolInputs, compute_display_data, fmt, fmt_signed, market_verdict, parse_amount, pct

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config.update(cfg.load_settings())


# ═══════════════════════════════════════════════════════════════════
# Request parsing
# ═══════════════════════════════════════════════════════════════════

def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _text(data: Mapping, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _flag(data: Mapping, key: str, default: bool = False) -> bool:
    value = data.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def parse_rent_inputs(data: Mapping) -> RentToolInputs:
    """Rent tool inputs from a form, query string or JSON body."""
    salary = parse_amount(data.get("salaryAnnual"), default=-1.0)
    if salary <= 0:
        raise ValueError("salaryAnnual is required and must be positive")
    state_code = _text(data, "stateCode") or _text(data, "state")
    if not state_code:
        raise ValueError("stateCode is required")

    profile = tax.SalaryProfile(
        salary_annual=salary,
        state_code=state_code,
        employee_401k_pct=parse_amount(data.get("employee401kPct")),
        hsa_annual=parse_amount(data.get("hsaAnnual")),
    )
    return RentToolInputs(
        profile=profile,
        debt_monthly=parse_amount(data.get("debtMonthly")),
        city=_text(data, "city"),
        state_name=_text(data, "state") or profile.state_code,
        region=_text(data, "region"),
        start_date=_text(data, "startDate"),
    )


def parse_leap_inputs(data: Mapping) -> Dict[str, Any]:
    salary = parse_amount(data.get("salaryAnnual"))
    if salary < 0:
        raise ValueError("salaryAnnual must not be negative")
    return {
        "salary_annual": salary,
        "current_401k_pct": parse_amount(data.get("current401kPct"), cfg.DEFAULT_CURRENT_401K_PCT),
        "has_employer_match": _flag(data, "hasEmployerMatch", default=True),
        "match_pct": parse_amount(data.get("matchPct"), cfg.DEFAULT_MATCH_PCT),
        "match_rate_pct": parse_amount(data.get("matchRatePct"), cfg.DEFAULT_MATCH_RATE_PCT),
        "real_return": parse_amount(data.get("realReturn"), cfg.REAL_RETURN_DEFAULT),
    }


def _zori_store() -> market.ZoriStore:
    return market.load_zori_data(app.config["ZORI_CSV_PATH"])


# ═══════════════════════════════════════════════════════════════════
# Analytics
# ═══════════════════════════════════════════════════════════════════

# GA4 posts run on this pool, off the request thread.
_analytics_pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="analytics")


def _send_event(event: str, params: Dict[str, Any] | None, client_id: str,
                settings: Dict[str, Any]) -> None:
    try:
        analytics.track(event, params, client_id, settings)
    except Exception:
        logger.exception("[Analytics] Dispatch failed for %s", event)


def _track(event: str, params: Dict[str, Any] | None = None) -> None:
    """Queue one event if the visitor accepted cookies.

    The event name is checked in the request; the POST happens on the
    analytics pool.
    """
    if event not in analytics.EVENTS:
        raise ValueError(f"Unknown analytics event: {event}")
    if not abtest.analytics_allowed(session):
        return
    client_id = session.setdefault("client_id", analytics.new_client_id())
    _analytics_pool.submit(_send_event, event, params, client_id, dict(app.config))


# ═══════════════════════════════════════════════════════════════════
# HTML Templates
# ═══════════════════════════════════════════════════════════════════

_HEAD = r"""
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{{ title }} | WeLeap</title>
<style>
  *{margin:0;padding:0;box-sizing:border-box}
  :root{
    --bg:#fbfaf7;--card:#ffffff;--text:#111827;--muted:#6b7280;
    --green:#3F6B42;--green-soft:#e7efe5;--border:#e5e7eb;--red:#b91c1c;
    --radius:14px;
  }
  body{background:var(--bg);color:var(--text);font-family:Georgia,'Times New Roman',serif;line-height:1.6}
  nav{display:flex;gap:1.5rem;align-items:center;padding:1rem 2rem;border-bottom:1px solid var(--border);background:#fff}
  nav a{color:var(--text);text-decoration:none;font-size:.95rem}
  nav .brand{font-weight:700;color:var(--green);margin-right:auto}
  .container{max-width:960px;margin:0 auto;padding:2rem 1.5rem}
  .hero{text-align:center;padding:1.5rem 0 2rem}
  .hero h1{font-size:clamp(1.6rem,4vw,2.4rem);letter-spacing:-.02em}
  .hero p{color:var(--muted);margin-top:.5rem}
  .card{background:var(--card);border:1px solid var(--border);border-radius:var(--radius);padding:1.6rem;margin-bottom:1.2rem}
  h2{font-size:1.15rem;margin-bottom:.8rem}
  .form-grid{display:grid;grid-template-columns:repeat(auto-fill,minmax(220px,1fr));gap:1rem 1.4rem}
  .form-group{display:flex;flex-direction:column}
  .form-group label{font-size:.8rem;color:var(--muted);margin-bottom:.25rem}
  .form-group input,.form-group select{border:1px solid var(--border);border-radius:8px;padding:.55rem .7rem;font-size:.95rem;font-family:inherit}
  .btn{background:var(--green);color:#fff;border:0;border-radius:8px;padding:.7rem 1.4rem;font-size:1rem;cursor:pointer;font-family:inherit}
  .btn.outline{background:#fff;color:var(--text);border:1px solid var(--border)}
  .big{font-size:2rem;font-weight:700}
  .muted{color:var(--muted);font-size:.9rem}
  .row{display:flex;justify-content:space-between;padding:.35rem 0;border-bottom:1px dashed var(--border)}
  .row:last-child{border-bottom:0}
  .pos{color:var(--green)} .neg{color:var(--red)}
  .error{background:#fef2f2;border:1px solid #fecaca;color:var(--red);border-radius:8px;padding:.8rem 1rem;margin-bottom:1rem}
  .chart img{width:100%;height:auto}
  .impact-grid{display:grid;grid-template-columns:repeat(3,1fr);gap:1rem}
  .impact-grid .card{text-align:center}
  #consent{position:fixed;left:0;right:0;bottom:0;background:#fff;border-top:1px solid var(--border);box-shadow:0 -8px 24px rgba(0,0,0,.06);padding:1rem 2rem;display:flex;gap:1rem;align-items:center;justify-content:space-between}
  footer{text-align:center;color:var(--muted);font-size:.8rem;padding:2rem 0}
  @media(max-width:640px){.impact-grid{grid-template-columns:1fr}#consent{flex-direction:column}}
</style>
</head>
<body>
<nav>
  <a class="brand" href="/">WeLeap</a>
  <a href="/">Rent calculator</a>
  <a href="/net-worth-impact">Net worth impact</a>
  <a href="/leap-impact-simulator">Leap impact</a>
</nav>
<div class="container">
{% if error %}<div class="error">{{ error }}</div>{% endif %}
"""

_FOOT = r"""
<div class="card" id="waitlist">
  <h2>Join the early access list</h2>
  <form id="waitlist-form" class="form-grid">
    <div class="form-group"><label>Email</label><input type="email" name="email" required></div>
    <div class="form-group" style="justify-content:flex-end"><button class="btn" type="submit">Get early access</button></div>
  </form>
  <p class="muted" id="waitlist-msg"></p>
</div>
<footer>For educational/illustrative purposes only. Not financial advice.</footer>
</div>
{% if show_consent %}
<div id="consent">
  <div>
    <strong>Cookie Consent</strong>
    <p class="muted">We use cookies to analyze site traffic. You can decline non-essential cookies.</p>
  </div>
  <div>
    <button class="btn outline" data-choice="declined">Decline</button>
    <button class="btn" data-choice="accepted">Accept All</button>
  </div>
</div>
{% endif %}
<script>
(function(){
  function post(url, body){
    return fetch(url,{method:'POST',headers:{'Content-Type':'application/json'},body:JSON.stringify(body)})
      .then(function(r){return r.json();});
  }
  var form=document.getElementById('waitlist-form');
  if(form){
    form.addEventListener('submit',function(e){
      e.preventDefault();
      post('/api/waitlist',{email:form.email.value,signupType:'early_access',page:window.location.pathname})
        .then(function(d){document.getElementById('waitlist-msg').textContent=d.message||d.error;});
    });
  }
  var banner=document.getElementById('consent');
  if(banner){
    banner.querySelectorAll('button').forEach(function(b){
      b.addEventListener('click',function(){
        post('/api/consent',{choice:b.getAttribute('data-choice')}).then(function(){banner.remove();});
      });
    });
  }
})();
</script>
</body>
</html>
"""

RENT_TEMPLATE = _HEAD + r"""
<div class="hero">
  <h1>How much rent can I afford?</h1>
  <p>Your safe rent range from real take-home pay, not gross salary.</p>
</div>

<div class="card">
  <form method="POST" action="/" class="form-grid">
    <div class="form-group"><label>Gross annual salary</label>
      <input name="salaryAnnual" value="{{ form.get('salaryAnnual', '85000') }}" required></div>
    <div class="form-group"><label>State code</label>
      <input name="stateCode" value="{{ form.get('stateCode', 'TX') }}" maxlength="2" required></div>
    <div class="form-group"><label>Pretax 401(k) %</label>
      <input name="employee401kPct" value="{{ form.get('employee401kPct', '5') }}"></div>
    <div class="form-group"><label>Pretax HSA per year</label>
      <input name="hsaAnnual" value="{{ form.get('hsaAnnual', '0') }}"></div>
    <div class="form-group"><label>Monthly debt payments</label>
      <input name="debtMonthly" value="{{ form.get('debtMonthly', '0') }}"></div>
    <div class="form-group"><label>Metro (optional)</label>
      <input name="region" value="{{ form.get('region', '') }}" placeholder="e.g. Austin, TX"></div>
    <div class="form-group"><label>Preset city (optional)</label>
      <select name="city">
        <option value="">Other</option>
        {% for c in cities %}<option value="{{ c }}" {{ 'selected' if form.get('city') == c }}>{{ c }}</option>{% endfor %}
      </select></div>
    <div class="form-group"><label>Job start date</label>
      <input type="date" name="startDate" value="{{ form.get('startDate', '') }}"></div>
    <div class="form-group" style="justify-content:flex-end"><button class="btn" type="submit">Calculate</button></div>
  </form>
</div>

{% if d %}
<div class="card">
  <h2>Your real monthly take-home</h2>
  <div class="big">{{ fmt(d.take_home_monthly) }}</div>
  <p class="muted">{{ fmt(d.take_home_annual) }} annually</p>
  <div class="row"><span>Gross salary</span><span>{{ fmt(d.salary) }}</span></div>
  <div class="row"><span>Federal tax</span><span>-{{ fmt(d.tax.federal) }}</span></div>
  <div class="row"><span>State tax ({{ d.state_code }})</span><span>-{{ fmt(d.tax.state) }}</span></div>
  <div class="row"><span>FICA</span><span>-{{ fmt(d.tax.fica) }}</span></div>
</div>

<div class="card">
  <h2>Safe rent range</h2>
  <div class="big">{{ d.rent_formatted }}</div>
  <p class="muted">28–35% of take-home{% if d.debt %}, adjusted for {{ fmt(d.debt) }}/mo debt{% endif %}.</p>
  {% if verdict %}<p>{{ verdict }}</p>{% endif %}
</div>

<div class="card">
  <h2>Monthly budget (50/30/20)</h2>
  <div class="chart"><img src="data:image/png;base64,{{ budget_chart }}" alt="Budget split"></div>
</div>

{% if d.upfront %}
<div class="card">
  <h2>Cash you need upfront</h2>
  <div class="big">{{ fmt(d.upfront.total_low) }}–{{ fmt(d.upfront.total_high) }}</div>
  <div class="row"><span>Security deposit</span><span>{{ fmt(d.upfront.deposit_low) }}–{{ fmt(d.upfront.deposit_high) }}</span></div>
  <div class="row"><span>First month's rent</span><span>{{ fmt(d.upfront.first_month_low) }}–{{ fmt(d.upfront.first_month_high) }}</span></div>
  <div class="row"><span>Living costs ({{ d.upfront.gap_days }} days)</span><span>{{ fmt(d.upfront.gap_living_costs) }}</span></div>
  <div class="row"><span>Moving &amp; setup</span><span>{{ fmt(d.upfront.moving_setup) }}</span></div>
  {% if d.timing_message %}<p class="muted" style="margin-top:.8rem">{{ d.timing_message }}</p>{% endif %}
</div>
{% endif %}

<div class="card">
  <h2>Why it matters</h2>
  <p>Staying in range instead of spending 40% on rent protects about
    <strong>{{ fmt(d.protection_30yr) }}</strong> of net worth over 30 years.</p>
  <p style="margin-top:1rem"><a class="btn" href="/rent-plan.pdf?{{ query }}">Download your rent plan (PDF)</a></p>
</div>
{% endif %}
""" + _FOOT

IMPACT_TEMPLATE = _HEAD + r"""
<div class="hero">
  <h1>Net worth impact</h1>
  <p>One monthly change, translated into what it means for your future net worth.</p>
</div>

<div class="card">
  <form method="POST" action="/net-worth-impact" class="form-grid">
    <div class="form-group"><label>Monthly change ($, negative for a cut)</label>
      <input name="monthlyDelta" value="{{ form.get('monthlyDelta', '200') }}" required></div>
    <div class="form-group"><label>Where the money goes</label>
      <select name="useCase">
        {% for u, label in use_cases %}<option value="{{ u }}" {{ 'selected' if form.get('useCase') == u }}>{{ label }}</option>{% endfor %}
      </select></div>
    <div class="form-group" style="justify-content:flex-end"><button class="btn" type="submit">Show impact</button></div>
  </form>
</div>

{% if impacts %}
<div class="impact-grid">
  {% for h in impacts %}
  <div class="card">
    <p class="muted">In {{ h.years }} year{{ 's' if h.years != 1 }}</p>
    <div class="big {{ 'pos' if h.impact >= 0 else 'neg' }}">{{ fmt_signed(h.impact) }}</div>
  </div>
  {% endfor %}
</div>
<div class="card chart"><img src="data:image/png;base64,{{ chart }}" alt="Impact by horizon"></div>
<p class="muted">Assumes a {{ pct(real_return * 100, 0) }} real return for investing and a {{ pct(debt_apr * 100, 0) }} APR for debt payoff.
  Debt payoff uses a simplified interest-saved estimate.</p>
{% endif %}
""" + _FOOT

LEAP_TEMPLATE = _HEAD + r"""
<div class="hero">
  {% if variant == 'B' %}
  <h1>What is waiting a year really costing you?</h1>
  {% else %}
  <h1>Find your next Leap</h1>
  {% endif %}
  <p>The single 401(k) change with the biggest impact, and what it's worth by year 30.</p>
</div>

<div class="card">
  <form method="POST" action="/leap-impact-simulator" class="form-grid">
    <div class="form-group"><label>Gross annual salary</label>
      <input name="salaryAnnual" value="{{ form.get('salaryAnnual', '85000') }}" required></div>
    <div class="form-group"><label>Current 401(k) %</label>
      <input name="current401kPct" value="{{ form.get('current401kPct', default_pct) }}"></div>
    <div class="form-group"><label>Employer match?</label>
      <select name="hasEmployerMatch">
        <option value="yes">Yes</option>
        <option value="no" {{ 'selected' if form.get('hasEmployerMatch') == 'no' }}>No</option>
      </select></div>
    <div class="form-group"><label>Match up to (% of salary)</label>
      <input name="matchPct" value="{{ form.get('matchPct', default_match) }}"></div>
    <div class="form-group" style="justify-content:flex-end"><button class="btn" type="submit">Simulate</button></div>
  </form>
</div>

{% if r %}
<div class="card">
  <h2>{{ r.leap.label }}</h2>
  <p>{{ r.leap.summary }}</p>
  {% if r.leap.type != 'at_cap' %}
  <div class="row"><span>Extra net worth at year 30</span><span class="pos">{{ fmt_signed(r.trajectory.delta) }}</span></div>
  <div class="row"><span>Cost of waiting 12 months</span><span class="neg">-{{ fmt(r.cost_of_delay) }}</span></div>
  {% endif %}
</div>
<div class="card chart"><img src="data:image/png;base64,{{ chart }}" alt="Net worth trajectory"></div>
{% endif %}
""" + _FOOT


def _render(template: str, status: int = 200, **ctx):
    ctx.setdefault("error", None)
    ctx.setdefault("form", {})
    return render_template_string(
        template,
        show_consent=abtest.consent_choice(session) is None,
        fmt=fmt,
        fmt_signed=fmt_signed,
        pct=pct,
        **ctx,
    ), status


# ═══════════════════════════════════════════════════════════════════
# Pages
# ═══════════════════════════════════════════════════════════════════

@app.route("/", methods=["GET", "POST"])
def index():
    cities = list(cfg.HUD_CITY_KEYS)
    if request.method == "GET":
        _track("rent_tool_page_view")
        return _render(RENT_TEMPLATE, title="How much rent can I afford?", cities=cities, d=None)

    # POST: run the rent tool
    form = request.form.to_dict()
    try:
        inputs = parse_rent_inputs(form)
    except ValueError as exc:
        return _render(RENT_TEMPLATE, 400, title="How much rent can I afford?",
                       cities=cities, d=None, form=form, error=str(exc))

    d = compute_display_data(inputs, _zori_store())
    _track("rent_form_submit", d["buckets"])

    query = urlencode({k: v for k, v in form.items() if v})
    return _render(
        RENT_TEMPLATE,
        title="Your safe rent range",
        cities=cities,
        d=d,
        form=form,
        verdict=market_verdict(d),
        budget_chart=report.budget_chart(d["budget"]),
        query=query,
    )


@app.route("/rent-plan.pdf")
def rent_plan_pdf():
    inputs = parse_rent_inputs(request.args)
    d = compute_display_data(inputs, _zori_store())
    pdf = report.rent_plan_pdf(d)
    _track("playbook_pdf_downloaded", {"salary_bucket": d["buckets"]["salary_bucket"]})
    return send_file(io.BytesIO(pdf), mimetype="application/pdf",
                     as_attachment=True, download_name="rent_plan.pdf")


_USE_CASE_LABELS = [
    ("investing", "Investing"),
    ("cash", "Cash savings"),
    ("debt", "Paying down debt"),
]


@app.route("/net-worth-impact", methods=["GET", "POST"])
def net_worth_impact():
    ctx = {
        "title": "Net worth impact",
        "use_cases": _USE_CASE_LABELS,
        "real_return": cfg.REAL_RETURN_DEFAULT,
        "debt_apr": cfg.DEBT_APR_DEFAULT,
        "impacts": None,
    }
    if request.method == "GET":
        _track("net_worth_impact_page_view")
        return _render(IMPACT_TEMPLATE, **ctx)

    form = request.form.to_dict()
    use_case = form.get("useCase", "investing")
    try:
        delta = parse_amount(form.get("monthlyDelta"))
        impacts = [asdict(h) for h in impact.compute_impacts(delta, use_case)]
    except ValueError as exc:
        return _render(IMPACT_TEMPLATE, 400, form=form, error=str(exc), **ctx)

    _track("net_worth_impact_calculated", {"use_case": use_case})
    ctx["impacts"] = impacts
    title = f"{fmt_signed(delta)}/mo, {dict(_USE_CASE_LABELS)[use_case].lower()}"
    return _render(IMPACT_TEMPLATE, form=form, chart=report.impact_chart(impacts, title), **ctx)


@app.route("/leap-impact-simulator", methods=["GET", "POST"])
def leap_impact_simulator():
    variant = abtest.assign_variant(session, cfg.LEAP_VARIANT_KEY, force=request.args.get("ab"))
    ctx = {
        "title": "Leap impact simulator",
        "variant": variant,
        "default_pct": cfg.DEFAULT_CURRENT_401K_PCT,
        "default_match": cfg.DEFAULT_MATCH_PCT,
        "r": None,
    }
    if request.method == "GET":
        _track("leap_impact_page_view", {"variant": variant})
        return _render(LEAP_TEMPLATE, **ctx)

    form = request.form.to_dict()
    try:
        result = leap.simulate(**parse_leap_inputs(form))
    except ValueError as exc:
        return _render(LEAP_TEMPLATE, 400, form=form, error=str(exc), **ctx)

    _track("leap_impact_calculated", {"variant": variant, "leap_type": result["leap"].type})
    ctx["r"] = result
    chart = report.trajectory_chart(result["trajectory"], result["cost_of_delay"])
    return _render(LEAP_TEMPLATE, form=form, chart=chart, **ctx)


# ═══════════════════════════════════════════════════════════════════
# JSON API
# ═══════════════════════════════════════════════════════════════════

@app.route("/api/waitlist", methods=["POST"])
def api_waitlist():
    body = _json_body()
    payload = leads.WaitlistPayload(
        email=_text(body, "email") or "",
        signup_type=_text(body, "signupType") or "",
        page=_text(body, "page") or "",
    )
    leads.submit_to_waitlist(payload, app.config["GOOGLE_SCRIPT_URL"])
    _track("waitlist_submitted", {"signup_type": payload.signup_type})
    return jsonify(success=True, message="Successfully joined waitlist")


@app.route("/api/subscribe", methods=["POST"])
def api_subscribe():
    body = _json_body()
    result = leads.subscribe_newsletter(
        body.get("email"),
        app.config["SUBSTACK_PUBLICATION_URL"],
        app.config["GOOGLE_SCRIPT_URL"],
    )
    _track("newsletter_subscribed")
    return jsonify(result)


@app.route("/api/waitlist/check")
def api_waitlist_check():
    """Which integrations are configured, without exposing their values."""
    script_url = app.config.get("GOOGLE_SCRIPT_URL") or ""
    ga_id = app.config.get("GA_MEASUREMENT_ID") or ""
    return jsonify(
        configured={
            "googleSheets": bool(script_url),
            "googleAnalytics": bool(ga_id),
            "substack": bool(app.config.get("SUBSTACK_PUBLICATION_URL")),
            "taxApi": bool(app.config.get("API_NINJAS_KEY")),
        },
        googleSheetsUrlLength=len(script_url),
        googleAnalyticsIdLength=len(ga_id),
        environment=app.config.get("APP_ENV"),
    )


@app.route("/api/zori")
def api_zori():
    store = _zori_store()
    state = request.args.get("state")
    region = request.args.get("region")

    if state and not region:
        options = market.metro_options_for_state(store, state)
        logger.info("[ZORI API] Metro options for %s: %d options", state, len(options))
        return jsonify(options=options)

    if state and region:
        result = market.median_rent_for_region(store, region, state)
        if result["medianRent"] is not None:
            band = market.market_rent_range(result["medianRent"])
            result["market"] = {
                "low": band.market_low,
                "high": band.market_high,
                "tier": band.tier,
                "buffered": band.buffered,
            }
        return jsonify(result)

    return jsonify(metrosByState=store.metros_by_state)


def _tax_json(result: Mapping) -> Dict[str, Any]:
    return {
        "federalTaxAnnual": result["federal"],
        "stateTaxAnnual": result["state"],
        "ficaTaxAnnual": result["fica"],
        "totalTaxAnnual": result["total"],
        "netIncomeAnnual": result["net"],
        "taxSource": result.get("source", "fallback"),
    }


@app.route("/api/tax", methods=["POST"])
def api_tax():
    body = _json_body()
    state = _text(body, "state")
    if not state:
        raise ValueError("Missing required field: state is required")
    state = state.upper()

    salary = parse_amount(body.get("salaryAnnual"))
    take_home = parse_amount(body.get("takeHomeAnnual"))

    # Reverse mode: take-home -> gross
    if take_home > 0 and salary == 0:
        solved = tax.solve_gross_from_take_home(take_home, state)
        out = _tax_json(solved)
        out["salaryAnnual"] = solved["salary_annual"]
        return jsonify(out)

    if salary <= 0:
        raise ValueError("Missing required field: salaryAnnual (or takeHomeAnnual for reverse) is required")

    result = tax_service.lookup_tax(salary, state, app.config["API_NINJAS_KEY"])
    return jsonify(_tax_json(result))


@app.route("/api/rent-range", methods=["POST"])
def api_rent_range():
    inputs = parse_rent_inputs(_json_body())
    d = compute_display_data(inputs, _zori_store())
    _track("rent_form_submit", d["buckets"])
    return jsonify(
        takeHomeMonthly=d["take_home_monthly"],
        takeHomeAnnual=d["take_home_annual"],
        tax=d["tax"],
        rentRange={"low": d["rent_low"], "high": d["rent_high"], "formatted": d["rent_formatted"]},
        budget=d["budget"],
        upfrontCash=d["upfront"],
        netWorthProtection30yr=d["protection_30yr"],
        timingMessage=d["timing_message"],
        market=d["market"],
    )


@app.route("/api/net-worth-impact", methods=["POST"])
def api_net_worth_impact():
    body = _json_body()
    if body.get("monthlyDelta") in (None, ""):
        raise ValueError("monthlyDelta is required")
    delta = parse_amount(body.get("monthlyDelta"))
    use_case = _text(body, "useCase") or "investing"
    real_return = body.get("realReturn")
    debt_apr = body.get("debtApr")
    impacts = impact.compute_impacts(
        delta,
        use_case,
        real_return=None if real_return is None else parse_amount(real_return),
        debt_apr=None if debt_apr is None else parse_amount(debt_apr),
    )
    _track("net_worth_impact_calculated", {"use_case": use_case})
    return jsonify(impacts=[asdict(h) for h in impacts])


@app.route("/api/leap-impact", methods=["POST"])
def api_leap_impact():
    result = leap.simulate(**parse_leap_inputs(_json_body()))
    trajectory: leap.TrajectoryResult = result["trajectory"]
    return jsonify(
        leap=asdict(result["leap"]),
        status=result["status"],
        trajectory={
            "baselineByYear": trajectory.baseline_by_year,
            "optimizedByYear": trajectory.optimized_by_year,
            "yearLabels": trajectory.year_labels,
            "baselineEnd": trajectory.baseline_end,
            "optimizedEnd": trajectory.optimized_end,
            "delta": trajectory.delta,
        },
        costOfDelay=result["cost_of_delay"],
    )


@app.route("/api/consent", methods=["POST"])
def api_consent():
    choice = abtest.set_consent(session, _text(_json_body(), "choice") or "")
    return jsonify(success=True, choice=choice)


@app.route("/api/track", methods=["POST"])
def api_track():
    body = _json_body()
    event = _text(body, "event") or ""
    if event not in analytics.EVENTS:
        raise ValueError(f"Unknown analytics event: {event}")
    params = body.get("params") if isinstance(body.get("params"), dict) else {}
    _track(event, params)
    return jsonify(success=True)


# ═══════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════

@app.errorhandler(ValueError)
def handle_bad_input(exc: ValueError):
    return jsonify(error=str(exc)), 400


@app.errorhandler(Exception)
def handle_unexpected(exc: Exception):
    if isinstance(exc, HTTPException):
        return exc
    logger.exception("Unhandled error on %s %s", request.method, request.path)
    return jsonify(error="Internal server error"), 500


# ═══════════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════════

def run_web(debug: bool = True) -> None:
    """Start the Flask development server and open browser."""
    import threading
    import webbrowser

    logging.basicConfig(level=logging.INFO)
    logger.info("Starting web app at http://localhost:5000")
    threading.Timer(1.0, lambda: webbrowser.open("http://localhost:5000")).start()
    app.run(host="127.0.0.1", port=5000, debug=debug)


if __name__ == "__main__":
    run_web()
