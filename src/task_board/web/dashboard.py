"""Dashboard HTML with inline CSS and vanilla JS."""


def get_dashboard_html() -> str:
    return """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Task Board</title>
<style>
  :root {
    --bg: #0d1117; --surface: #161b22; --border: #30363d;
    --text: #e6edf3; --text-muted: #8b949e; --text-dim: #6e7681;
    --Pending: #8b949e; --InProgress: #58a6ff; --Completed: #3fb950;
    --Failed: #f85149; --Blocked: #d29922;
  }
  * { margin: 0; padding: 0; box-sizing: border-box; }
  body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif;
         background: var(--bg); color: var(--text); line-height: 1.5; }
  .container { max-width: 1100px; margin: 0 auto; padding: 24px 16px;
               display: grid; grid-template-columns: 2fr 1fr; gap: 20px; }
  header { grid-column: 1 / -1; display: flex; justify-content: space-between; align-items: center;
           padding-bottom: 16px; border-bottom: 1px solid var(--border); }
  header h1 { font-size: 20px; font-weight: 600; }
  header code { font-size: 12px; color: var(--text-muted); }
  .panel { background: var(--surface); border: 1px solid var(--border); border-radius: 8px; padding: 16px; }
  .panel h2 { font-size: 14px; margin-bottom: 10px; color: var(--text-muted); text-transform: uppercase; }
  .progress-bar { height: 8px; background: var(--bg); border-radius: 4px; overflow: hidden;
                  border: 1px solid var(--border); margin: 6px 0 12px; }
  .progress-bar .fill { height: 100%; background: var(--Completed); transition: width 0.3s; }
  .phase { margin-bottom: 16px; }
  .phase-title { font-weight: 600; font-size: 14px; display: flex; justify-content: space-between; }
  .task { display: flex; gap: 10px; align-items: center; padding: 4px 0; font-size: 13px; }
  .badge { display: inline-block; min-width: 84px; text-align: center; padding: 1px 8px; border-radius: 12px;
           font-size: 11px; font-weight: 600; }
  .task-id { font-family: monospace; color: var(--text-dim); }
  .task-meta { color: var(--text-dim); font-size: 12px; }
  .task button { margin-left: auto; background: var(--bg); color: var(--text-muted); border: 1px solid var(--border);
                 border-radius: 4px; font-size: 11px; padding: 2px 8px; cursor: pointer; }
  .agent, .error { font-size: 13px; padding: 6px 0; border-bottom: 1px solid var(--border); }
  .error .suggestion { color: var(--text-muted); font-size: 12px; }
  .empty { color: var(--text-muted); font-size: 13px; }
</style>
</head>
<body>
<div class="container">
  <header><h1>Task Board</h1><code id="ledger"></code></header>
  <div class="panel" id="phases"><div class="empty">Loading...</div></div>
  <div>
    <div class="panel" id="agents" style="margin-bottom: 20px"></div>
    <div class="panel" id="errors"></div>
  </div>
</div>

<script>
async function fetchJSON(path, options) {
  const res = await fetch(path, options);
  if (!res.ok) return null;
  return res.json();
}

function esc(s) {
  if (s === null || s === undefined) return '';
  const d = document.createElement('div');
  d.textContent = String(s);
  return d.innerHTML;
}

function formatDuration(seconds) {
  const s = Math.floor(seconds);
  if (s < 60) return `${s}s`;
  if (s < 3600) return `${Math.floor(s / 60)}m ${s % 60}s`;
  return `${Math.floor(s / 3600)}h ${Math.floor((s % 3600) / 60)}m`;
}

function badge(status) {
  return `<span class="badge" style="color: var(--${status}); border: 1px solid var(--${status})">${status}</span>`;
}

async function retry(taskId) {
  const res = await fetchJSON(`/api/tasks/${encodeURIComponent(taskId)}/retry`, {method: 'POST'});
  if (!res) alert(`Could not retry ${taskId}`);
  load();
}

function renderPhases(state) {
  const pct = Math.round(state.overall_progress * 100);
  let html = `<h2>Progress: ${state.completed_tasks}/${state.total_tasks} (${pct}%)</h2>
    <div class="progress-bar"><div class="fill" style="width:${pct}%"></div></div>`;
  if (state.phases.length === 0) {
    return html + '<div class="empty">No phases found in the ledger.</div>';
  }
  for (const phase of state.phases) {
    html += `<div class="phase"><div class="phase-title">
      <span>${esc(phase.id)}: ${esc(phase.name)}</span>
      <span class="task-meta">${Math.round(phase.progress * 100)}%</span></div>`;
    for (const task of phase.tasks) {
      const meta = [];
      if (task.agent) meta.push('@' + esc(task.agent));
      if (task.blocked_by.length) meta.push('blocked by ' + task.blocked_by.map(esc).join(', '));
      const timing = state.task_times[task.id];
      if (timing && timing.duration_seconds !== null) meta.push(formatDuration(timing.duration_seconds));
      const canRetry = task.status === 'Failed' || task.status === 'Blocked';
      html += `<div class="task">${badge(task.status)}
        <span class="task-id">${esc(task.id)}</span><span>${esc(task.name)}</span>
        <span class="task-meta">${meta.join(' &middot; ')}</span>
        ${canRetry ? `<button onclick="retry('${esc(task.id)}')">Retry</button>` : ''}</div>`;
    }
    html += '</div>';
  }
  return html;
}

function renderAgents(agents) {
  let html = '<h2>Agents</h2>';
  if (agents.length === 0) return html + '<div class="empty">No agent activity.</div>';
  for (const a of agents) {
    html += `<div class="agent"><strong>${esc(a.agent_id)}</strong> ${esc(a.status)}
      ${a.current_task ? ` &middot; ${esc(a.current_task)}` : ''}
      ${a.current_tool ? ` &middot; <code>${esc(a.current_tool)}</code>` : ''}
      <div class="task-meta">${a.event_count} events, ${a.error_count} errors</div></div>`;
  }
  return html;
}

function renderErrors(errors) {
  let html = '<h2>Recent errors</h2>';
  if (errors.length === 0) return html + '<div class="empty">No errors.</div>';
  for (const e of errors.slice(0, 20)) {
    html += `<div class="error"><span class="task-id">${esc(e.task_id)}</span> ${esc(e.message)}
      <div class="suggestion">${esc(e.category)} (${e.retryable ? 'retryable' : 'no retry'}): ${esc(e.suggestion)}</div></div>`;
  }
  return html;
}

async function load() {
  const state = await fetchJSON('/api/state');
  if (!state) return;
  document.getElementById('ledger').textContent = state.ledger_path;
  document.getElementById('phases').innerHTML = renderPhases(state);
  document.getElementById('agents').innerHTML = renderAgents(state.agents);
  document.getElementById('errors').innerHTML = renderErrors(state.recent_errors);
}

load();
setInterval(load, 2000);
</script>
</body>
</html>"""
