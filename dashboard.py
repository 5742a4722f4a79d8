#!/usr/bin/env python3
"""
Taskdeck Dashboard
Tasks + calendar + email in one page, with an AI chat that manages tasks
and AI suggestions mined from unread email and upcoming events.
Google is the source of truth; everything goes through the gog CLI.

Run: python3 dashboard.py
Open: http://localhost:3001
"""

import logging
from datetime import datetime

from flask import Flask, jsonify, render_template_string, request

import calendar_grid
import config
import conversations
import google_calendar
import google_tasks
import suggestions
import task_extractor
import task_groups
from logging_setup import setup_logging

logger = logging.getLogger(__name__)

app = Flask(__name__)

DASHBOARD_HTML = """
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Taskdeck</title>
<style>
  * { box-sizing: border-box; margin: 0; padding: 0; }

  body {
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
    background: #0f0f13;
    color: #e2e2e8;
    height: 100vh;
    display: flex;
    flex-direction: column;
  }

  .header {
    background: #18181f;
    border-bottom: 1px solid #2a2a35;
    padding: 12px 24px;
    display: flex;
    align-items: center;
    justify-content: space-between;
  }
  .header-left { display: flex; align-items: center; gap: 12px; }
  .logo { font-size: 22px; font-weight: 700; color: #7c6af7; letter-spacing: -0.5px; }
  .date-badge { font-size: 14px; color: #9090a8; }

  .tabs { display: flex; gap: 6px; }
  .tab {
    background: #22222c;
    border: 1px solid #2a2a35;
    color: #888;
    padding: 6px 14px;
    border-radius: 6px;
    cursor: pointer;
    font-size: 13px;
  }
  .tab.active { background: #7c6af7; color: white; border-color: #7c6af7; }
  .tab .badge { background: #ef4444; color: white; border-radius: 8px; padding: 0 6px; font-size: 11px; margin-left: 4px; }

  .layout { flex: 1; display: flex; min-height: 0; }
  .main { flex: 1; display: flex; flex-direction: column; min-width: 0; }
  .side {
    width: 340px;
    border-left: 1px solid #2a2a35;
    background: #14141a;
    display: flex;
    flex-direction: column;
  }

  .btn {
    background: #22222c;
    border: 1px solid #2a2a35;
    color: #aaa;
    padding: 5px 12px;
    border-radius: 6px;
    cursor: pointer;
    font-size: 12px;
  }
  .btn:hover { background: #2a2a35; color: #ddd; }
  .btn-primary { background: #7c6af7; border-color: #7c6af7; color: white; }
  .btn-primary:hover { background: #6a58e6; color: white; }
  .btn:disabled { opacity: 0.5; cursor: default; }

  .empty { padding: 20px 16px; color: #444; font-size: 13px; text-align: center; }
  .error-box { margin: 16px; padding: 12px 16px; border: 1px solid #7f1d1d; background: #2a1212; border-radius: 8px; color: #fca5a5; font-size: 13px; }
  .error-box button { margin-top: 8px; }

  /* Task board */
  .board { flex: 1; display: flex; gap: 14px; padding: 16px; overflow-x: auto; min-height: 0; }
  .column {
    width: 300px;
    flex-shrink: 0;
    background: #18181f;
    border: 1px solid #2a2a35;
    border-radius: 10px;
    display: flex;
    flex-direction: column;
    max-height: 100%;
  }
  .column.collapsed { width: 44px; }
  .column.collapsed .column-body, .column.collapsed .column-add { display: none; }
  .column.collapsed .column-title { writing-mode: vertical-rl; }
  .column-header {
    padding: 10px 14px;
    border-bottom: 1px solid #2a2a35;
    display: flex;
    align-items: center;
    gap: 8px;
    cursor: pointer;
  }
  .column-title { font-size: 13px; font-weight: 600; color: #c8c8d8; flex: 1; }
  .column-del { color: #444; font-size: 12px; background: none; border: none; cursor: pointer; }
  .column-del:hover { color: #ef4444; }
  .column-body { overflow-y: auto; flex: 1; }
  .column-add { padding: 8px 10px; border-top: 1px solid #2a2a35; }
  .column-add input, .new-list input {
    width: 100%;
    background: #0f0f13;
    border: 1px solid #2a2a35;
    color: #e2e2e8;
    border-radius: 6px;
    padding: 6px 8px;
    font-size: 13px;
  }
  .new-list { width: 220px; flex-shrink: 0; }

  .group-label {
    padding: 6px 14px;
    font-size: 11px;
    font-weight: 600;
    text-transform: uppercase;
    letter-spacing: 0.5px;
    background: #1c1c24;
    color: #666;
  }
  .group-overdue .group-label { color: #ef4444; }
  .group-today .group-label { color: #f59e0b; }
  .group-this_week .group-label { color: #22d3ee; }

  .task-row {
    padding: 8px 14px;
    border-bottom: 1px solid #1a1a22;
    display: flex;
    align-items: flex-start;
    gap: 8px;
  }
  .task-row input[type=checkbox] { margin-top: 3px; accent-color: #7c6af7; }
  .task-text { font-size: 14px; color: #c8c8d8; line-height: 1.4; flex: 1; }
  .task-row.done .task-text { text-decoration: line-through; color: #555; }
  .task-notes { font-size: 12px; color: #555; margin-top: 2px; }
  .task-due { font-size: 12px; color: #6b7280; flex-shrink: 0; }
  .task-del { background: none; border: none; color: #333; cursor: pointer; font-size: 12px; }
  .task-row:hover .task-del { color: #888; }

  /* Calendar */
  .cal-toolbar { display: flex; align-items: center; gap: 8px; padding: 10px 16px; border-bottom: 1px solid #2a2a35; }
  .cal-title { font-size: 14px; font-weight: 600; color: #c8c8d8; margin-left: 8px; flex: 1; }
  .cal-head { display: flex; border-bottom: 1px solid #2a2a35; padding-left: 56px; }
  .cal-head div { flex: 1; text-align: center; font-size: 12px; color: #777; padding: 6px 0; }
  .cal-head div.today { color: #7c6af7; font-weight: 700; }
  .cal-allday { display: flex; padding-left: 56px; border-bottom: 1px solid #2a2a35; min-height: 4px; }
  .cal-allday > div { flex: 1; padding: 2px; }
  .allday-event { background: #1e3a5f; color: #bfdbfe; font-size: 11px; border-radius: 4px; padding: 2px 6px; margin-bottom: 2px; }
  .cal-scroll { flex: 1; overflow-y: auto; position: relative; }
  .cal-grid { display: flex; position: relative; }
  .cal-hours { width: 56px; position: relative; flex-shrink: 0; }
  .cal-hour-label { position: absolute; right: 6px; font-size: 10px; color: #555; }
  .cal-day { flex: 1; position: relative; border-left: 1px solid #1e1e28; user-select: none; }
  .cal-hour-line { position: absolute; left: 0; right: 0; border-top: 1px solid #1a1a22; }
  .cal-event {
    position: absolute;
    left: 2px;
    right: 2px;
    background: #312e81;
    border-left: 3px solid #7c6af7;
    border-radius: 4px;
    padding: 2px 6px;
    font-size: 11px;
    color: #e0e7ff;
    overflow: hidden;
    cursor: grab;
  }
  .cal-event.dragging { opacity: 0.8; outline: 1px dashed #a5b4fc; }
  .cal-event .resize { position: absolute; left: 0; right: 0; bottom: 0; height: 6px; cursor: ns-resize; }
  .cal-selection { position: absolute; left: 2px; right: 2px; background: #7c6af733; border: 2px solid #7c6af7; border-radius: 4px; pointer-events: none; font-size: 11px; color: #c4b5fd; padding: 2px 6px; }
  .cal-now { position: absolute; left: 0; right: 0; border-top: 2px solid #ef4444; pointer-events: none; }

  /* Chat */
  .side-header { padding: 12px 16px; border-bottom: 1px solid #2a2a35; display: flex; justify-content: space-between; align-items: center; }
  .side-title { font-size: 11px; font-weight: 600; text-transform: uppercase; letter-spacing: 0.8px; color: #666; }
  .chat-log { flex: 1; overflow-y: auto; padding: 12px; display: flex; flex-direction: column; gap: 8px; }
  .msg { padding: 8px 12px; border-radius: 10px; font-size: 13px; line-height: 1.45; white-space: pre-wrap; max-width: 90%; }
  .msg.user { background: #7c6af7; color: white; align-self: flex-end; }
  .msg.assistant { background: #22222c; color: #d4d4e0; align-self: flex-start; }
  .msg.pending { color: #666; }
  .chat-input { padding: 10px; border-top: 1px solid #2a2a35; display: flex; gap: 6px; }
  .chat-input textarea {
    flex: 1;
    background: #0f0f13;
    border: 1px solid #2a2a35;
    border-radius: 8px;
    color: #e2e2e8;
    font-family: inherit;
    font-size: 13px;
    padding: 8px;
    resize: none;
    min-height: 38px;
  }

  /* Suggestions */
  .sugg-list { flex: 1; overflow-y: auto; padding: 12px; display: flex; flex-direction: column; gap: 10px; }
  .sugg-card { background: #18181f; border: 1px solid #2a2a35; border-radius: 8px; padding: 12px; }
  .sugg-source { font-size: 10px; font-weight: 700; text-transform: uppercase; letter-spacing: 0.5px; }
  .sugg-source.gmail { color: #f87171; }
  .sugg-source.calendar { color: #60a5fa; }
  .sugg-title { font-size: 14px; color: #e2e2e8; margin: 4px 0; }
  .sugg-meta { font-size: 12px; color: #555; }
  .sugg-snippet { font-size: 12px; color: #666; margin-top: 6px; border-top: 1px solid #22222c; padding-top: 6px; }
  .sugg-actions { display: flex; gap: 6px; margin-top: 8px; }

  /* Modal */
  .modal-bg { position: fixed; inset: 0; background: #00000088; display: none; align-items: center; justify-content: center; z-index: 500; }
  .modal-bg.open { display: flex; }
  .modal { background: #18181f; border: 1px solid #2a2a35; border-radius: 12px; padding: 20px; width: 360px; }
  .modal h2 { font-size: 16px; margin-bottom: 6px; }
  .modal .when { font-size: 13px; color: #888; margin-bottom: 12px; }
  .modal input { width: 100%; background: #0f0f13; border: 1px solid #2a2a35; color: #e2e2e8; border-radius: 6px; padding: 8px; font-size: 14px; }
  .modal .err { color: #f87171; font-size: 12px; margin-top: 6px; min-height: 14px; }
  .modal .row { display: flex; gap: 8px; justify-content: flex-end; margin-top: 12px; }

  .toast {
    position: fixed;
    bottom: 20px;
    right: 20px;
    background: #7c6af7;
    color: white;
    padding: 10px 18px;
    border-radius: 7px;
    font-size: 13px;
    opacity: 0;
    transform: translateY(8px);
    transition: all 0.18s;
    z-index: 1000;
  }
  .toast.show { opacity: 1; transform: translateY(0); }
  .hidden { display: none !important; }
</style>
</head>
<body>

<div class="header">
  <div class="header-left">
    <div class="logo">▦ Taskdeck</div>
    <div class="date-badge" id="current-date"></div>
  </div>
  <div class="tabs">
    <button class="tab active" id="tab-tasks" onclick="showMain('tasks')">Tasks</button>
    <button class="tab" id="tab-calendar" onclick="showMain('calendar')">Calendar</button>
  </div>
  <div class="tabs">
    <button class="tab active" id="tab-chat" onclick="showSide('chat')">AI Chat</button>
    <button class="tab" id="tab-suggestions" onclick="showSide('suggestions')">Suggestions<span class="badge hidden" id="sugg-count"></span></button>
  </div>
</div>

<div class="layout">
  <div class="main">
    <div id="tasks-view" class="board"><div class="empty">Loading tasks...</div></div>

    <div id="calendar-view" class="hidden" style="flex:1;display:flex;flex-direction:column;min-height:0">
      <div class="cal-toolbar">
        <button class="btn" onclick="calPrev()">‹</button>
        <button class="btn" onclick="calToday()">Today</button>
        <button class="btn" onclick="calNext()">›</button>
        <div class="cal-title" id="cal-title"></div>
        <button class="btn" id="mode-day" onclick="setCalMode('day')">Day</button>
        <button class="btn btn-primary" id="mode-week" onclick="setCalMode('week')">Week</button>
      </div>
      <div id="cal-error"></div>
      <div class="cal-head" id="cal-head"></div>
      <div class="cal-allday" id="cal-allday"></div>
      <div class="cal-scroll" id="cal-scroll">
        <div class="cal-grid" id="cal-grid"></div>
      </div>
    </div>
  </div>

  <div class="side">
    <div id="chat-panel" style="flex:1;display:flex;flex-direction:column;min-height:0">
      <div class="side-header">
        <span class="side-title">AI Chat</span>
        <button class="btn" onclick="clearChat()">Clear</button>
      </div>
      <div class="chat-log" id="chat-log">
        <div class="empty">Try "add buy milk tomorrow" or "finished the report"</div>
      </div>
      <div class="chat-input">
        <textarea id="chat-input" placeholder="Tell me what to do..."></textarea>
        <button class="btn btn-primary" id="chat-send" onclick="sendChat()">Send</button>
      </div>
    </div>

    <div id="suggestions-panel" class="hidden" style="flex:1;display:flex;flex-direction:column;min-height:0">
      <div class="side-header">
        <span class="side-title">Suggestions</span>
        <span>
          <button class="btn" onclick="analyze('gmail')">Mail</button>
          <button class="btn" onclick="analyze('calendar')">Events</button>
          <button class="btn btn-primary" onclick="analyze()">Analyze</button>
        </span>
      </div>
      <div class="sugg-list" id="sugg-list"><div class="empty">Press Analyze to look for tasks in your mail and calendar</div></div>
    </div>
  </div>
</div>

<div class="modal-bg" id="event-modal" onclick="closeEventModal()">
  <div class="modal" onclick="event.stopPropagation()">
    <h2>New event</h2>
    <div class="when" id="event-when"></div>
    <input id="event-title" placeholder="Title">
    <div class="err" id="event-error"></div>
    <div class="row">
      <button class="btn" onclick="closeEventModal()">Cancel</button>
      <button class="btn btn-primary" id="event-save" onclick="saveEvent()">Create</button>
    </div>
  </div>
</div>

<div class="toast" id="toast"></div>

<script>
const HOUR_HEIGHT = {{ hour_height }};
const SNAP = {{ snap_minutes }};
const POLL_MS = 60000;
const DISMISSED_KEY = 'taskdeck-dismissed-suggestions';
const LAST_ANALYZED_KEY = 'taskdeck-last-analyzed-date';

let sessionId = 'session-' + Date.now();
let taskLists = [];
let groupsByList = {};
let collapsed = {};
let calMode = 'week';
let calBase = new Date();
let pendingSelection = null;
let drag = null;
let suggestionsAnalyzedThisLoad = false;

function esc(s) {
  return String(s == null ? '' : s).replace(/[&<>"']/g, c => ({'&':'&amp;','<':'&lt;','>':'&gt;','"':'&quot;',"'":'&#39;'}[c]));
}

function localDate(d) {
  d = d || new Date();
  return `${d.getFullYear()}-${String(d.getMonth() + 1).padStart(2, '0')}-${String(d.getDate()).padStart(2, '0')}`;
}

function showToast(msg) {
  const t = document.getElementById('toast');
  t.textContent = msg;
  t.classList.add('show');
  setTimeout(() => t.classList.remove('show'), 2200);
}

async function api(path, options) {
  const res = await fetch('/api' + path, Object.assign({ headers: { 'Content-Type': 'application/json' } }, options || {}));
  if (!res.ok) {
    const err = await res.json().catch(() => ({ message: res.statusText }));
    throw new Error(err.message || err.error || 'Request failed');
  }
  if (res.status === 204) return null;
  return res.json();
}

function post(path, body, method) {
  return api(path, { method: method || 'POST', body: JSON.stringify(body || {}) });
}

function setDate() {
  document.getElementById('current-date').textContent =
    new Date().toLocaleDateString('en-US', { weekday: 'long', month: 'long', day: 'numeric' });
}

function showMain(which) {
  document.getElementById('tasks-view').classList.toggle('hidden', which !== 'tasks');
  document.getElementById('calendar-view').classList.toggle('hidden', which !== 'calendar');
  document.getElementById('tab-tasks').classList.toggle('active', which === 'tasks');
  document.getElementById('tab-calendar').classList.toggle('active', which === 'calendar');
  if (which === 'calendar') loadCalendar();
}

function showSide(which) {
  document.getElementById('chat-panel').classList.toggle('hidden', which !== 'chat');
  document.getElementById('suggestions-panel').classList.toggle('hidden', which !== 'suggestions');
  document.getElementById('tab-chat').classList.toggle('active', which === 'chat');
  document.getElementById('tab-suggestions').classList.toggle('active', which === 'suggestions');
  if (which === 'suggestions' && !suggestionsAnalyzedThisLoad && localStorage.getItem(LAST_ANALYZED_KEY) !== localDate()) {
    suggestionsAnalyzedThisLoad = true;
    analyze();
  }
}

// ---- Tasks ----

async function loadTasks(silent) {
  const board = document.getElementById('tasks-view');
  try {
    taskLists = await api('/tasks/lists');
    const results = await Promise.all(taskLists.map(l =>
      api(`/tasks/grouped?listId=${encodeURIComponent(l.id)}&today=${localDate()}`)));
    const first = Object.keys(groupsByList).length === 0;
    groupsByList = {};
    results.forEach(r => {
      groupsByList[r.listId] = r.groups;
      if (first && !(r.listId in collapsed)) {
        collapsed[r.listId] = !r.groups.some(g => g.key !== 'completed_today');
      }
    });
    renderBoard();
  } catch (e) {
    if (!silent) board.innerHTML = `<div class="error-box">${esc(e.message)}<br><button class="btn" onclick="loadTasks()">Try again</button></div>`;
  }
}

async function loadList(listId) {
  const r = await api(`/tasks/grouped?listId=${encodeURIComponent(listId)}&today=${localDate()}`);
  groupsByList[listId] = r.groups;
  renderBoard();
}

function renderBoard() {
  let html = '';
  for (const list of taskLists) {
    const groups = groupsByList[list.id] || [];
    const isCollapsed = collapsed[list.id];
    html += `<div class="column${isCollapsed ? ' collapsed' : ''}">
      <div class="column-header" onclick="toggleList('${esc(list.id)}')">
        <span class="column-title">${esc(list.title)}</span>
        <button class="column-del" title="Delete list" onclick="event.stopPropagation();deleteList('${esc(list.id)}')">✕</button>
      </div>
      <div class="column-body">`;
    if (!groups.length) html += '<div class="empty">No tasks</div>';
    for (const g of groups) {
      html += `<div class="group-${g.key}"><div class="group-label">${esc(g.label)} (${g.tasks.length})</div>`;
      for (const t of g.tasks) {
        const done = t.status === 'completed';
        html += `<div class="task-row${done ? ' done' : ''}" id="task-${esc(t.id)}">
          <input type="checkbox" ${done ? 'checked' : ''} onchange="toggleTask('${esc(t.id)}','${esc(list.id)}',this)">
          <div class="task-text">${esc(t.title)}${t.notes ? `<div class="task-notes">${esc(t.notes)}</div>` : ''}</div>
          <span class="task-due">${esc(t.dueLabel || '')}</span>
          <button class="task-del" onclick="deleteTask('${esc(t.id)}','${esc(list.id)}')">✕</button>
        </div>`;
      }
      html += '</div>';
    }
    html += `</div>
      <div class="column-add"><input placeholder="+ Add a task" onkeydown="if(event.key==='Enter')addTask('${esc(list.id)}',this)"></div>
    </div>`;
  }
  html += `<div class="new-list"><input placeholder="+ New list" onkeydown="if(event.key==='Enter')createList(this)"></div>`;
  document.getElementById('tasks-view').innerHTML = html;
}

function toggleList(listId) {
  collapsed[listId] = !collapsed[listId];
  renderBoard();
}

async function toggleTask(taskId, listId, box) {
  const row = document.getElementById('task-' + taskId);
  const completing = box.checked;
  if (row) row.classList.toggle('done', completing);
  try {
    await post(`/tasks/${encodeURIComponent(taskId)}`, { status: completing ? 'completed' : 'needsAction', listId }, 'PATCH');
    await loadList(listId);
  } catch (e) {
    box.checked = !completing;
    if (row) row.classList.toggle('done', !completing);
    showToast(e.message);
  }
}

async function deleteTask(taskId, listId) {
  const row = document.getElementById('task-' + taskId);
  if (row) row.classList.add('hidden');
  try {
    await api(`/tasks/${encodeURIComponent(taskId)}?listId=${encodeURIComponent(listId)}`, { method: 'DELETE' });
    await loadList(listId);
  } catch (e) {
    if (row) row.classList.remove('hidden');
    showToast(e.message);
  }
}

async function addTask(listId, input) {
  const title = input.value.trim();
  if (!title) return;
  input.disabled = true;
  try {
    await post('/tasks', { title, listId });
    input.value = '';
    await loadList(listId);
  } catch (e) {
    showToast(e.message);
  } finally {
    input.disabled = false;
  }
}

async function createList(input) {
  const title = input.value.trim();
  if (!title) return;
  try {
    const list = await post('/tasks/lists', { title });
    taskLists.push(list);
    groupsByList[list.id] = [];
    collapsed[list.id] = false;
    renderBoard();
  } catch (e) {
    showToast(e.message);
  }
}

async function deleteList(listId) {
  const list = taskLists.find(l => l.id === listId);
  if (!confirm(`Delete the list "${list ? list.title : listId}"?`)) return;
  try {
    await api(`/tasks/lists/${encodeURIComponent(listId)}`, { method: 'DELETE' });
    taskLists = taskLists.filter(l => l.id !== listId);
    delete groupsByList[listId];
    delete collapsed[listId];
    renderBoard();
  } catch (e) {
    showToast(e.message);
  }
}

// ---- Calendar ----

let calData = null;

function setCalMode(mode) {
  calMode = mode;
  document.getElementById('mode-day').classList.toggle('btn-primary', mode === 'day');
  document.getElementById('mode-week').classList.toggle('btn-primary', mode === 'week');
  loadCalendar();
}

function calShift(sign) {
  const d = new Date(calBase);
  d.setDate(d.getDate() + sign * (calMode === 'day' ? 1 : 7));
  calBase = d;
  loadCalendar();
}
function calPrev() { calShift(-1); }
function calNext() { calShift(1); }
function calToday() { calBase = new Date(); loadCalendar(); }

async function loadCalendar(silent) {
  try {
    calData = await api(`/calendar?mode=${calMode}&date=${localDate(calBase)}&layout=1`);
    document.getElementById('cal-error').innerHTML = '';
    renderCalendar();
  } catch (e) {
    if (!silent) document.getElementById('cal-error').innerHTML =
      `<div class="error-box">${esc(e.message)}<br><button class="btn" onclick="loadCalendar()">Try again</button></div>`;
  }
}

function snapFromY(y, isEnd) {
  const total = Math.max(0, Math.min(isEnd ? 24 * 60 : 24 * 60 - 1, (y / HOUR_HEIGHT) * 60));
  const snapped = Math.round(total / SNAP) * SNAP;
  return isEnd ? snapped : Math.min(snapped, 24 * 60 - SNAP);
}

function fmtMinutes(m) {
  return `${String(Math.floor(m / 60)).padStart(2, '0')}:${String(m % 60).padStart(2, '0')}`;
}

function renderCalendar() {
  const days = calData.days;
  const today = localDate();
  document.getElementById('cal-title').textContent = days.length === 1 ? days[0] : `${days[0]} – ${days[days.length - 1]}`;
  document.getElementById('cal-head').innerHTML = days.map(d =>
    `<div class="${d === today ? 'today' : ''}">${new Date(d + 'T12:00:00').toLocaleDateString('en-US', { weekday: 'short', day: 'numeric' })}</div>`).join('');

  let allday = '';
  let grid = '<div class="cal-hours" style="height:' + (24 * HOUR_HEIGHT) + 'px">';
  for (let h = 0; h < 24; h++) grid += `<div class="cal-hour-label" style="top:${h * HOUR_HEIGHT - 6}px">${h ? fmtMinutes(h * 60) : ''}</div>`;
  grid += '</div>';

  for (const d of days) {
    const dayEvents = calData.events.filter(e => e.day === d);
    allday += '<div>' + dayEvents.filter(e => !e.position).map(e =>
      `<div class="allday-event">${esc(e.summary)}</div>`).join('') + '</div>';

    grid += `<div class="cal-day" data-day="${d}" style="height:${24 * HOUR_HEIGHT}px" onmousedown="gridDown(event,'${d}')">`;
    for (let h = 0; h < 24; h++) grid += `<div class="cal-hour-line" style="top:${h * HOUR_HEIGHT}px"></div>`;
    for (const e of dayEvents.filter(e => e.position)) {
      grid += `<div class="cal-event" id="ev-${esc(e.id)}" style="top:${e.position.top}px;height:${e.position.height}px"
          onmousedown="eventDown(event,'${esc(e.id)}','move')" title="${esc(e.location || '')}">
        ${esc(e.summary)}<div class="resize" onmousedown="eventDown(event,'${esc(e.id)}','resize')"></div></div>`;
    }
    if (d === today) grid += `<div class="cal-now" style="top:${calData.nowOffset}px"></div>`;
    grid += '<div class="cal-selection hidden"></div></div>';
  }
  document.getElementById('cal-allday').innerHTML = allday;
  document.getElementById('cal-grid').innerHTML = grid;
}

function dayColumn(day) {
  return document.querySelector(`.cal-day[data-day="${day}"]`);
}

function offsetIn(col, e) {
  return e.clientY - col.getBoundingClientRect().top;
}

function gridDown(e, day) {
  if (calMode !== 'day' || e.target.closest('.cal-event')) return;
  const col = dayColumn(day);
  const y = offsetIn(col, e);
  drag = { kind: 'select', day, col, startY: y, endY: y + (30 / 60) * HOUR_HEIGHT };
  drawSelection();
}

function eventDown(e, eventId, mode) {
  if (calMode !== 'day') return;
  e.stopPropagation();
  e.preventDefault();
  const ev = calData.events.find(x => x.id === eventId);
  const el = document.getElementById('ev-' + eventId);
  drag = { kind: 'event', mode, ev, el, col: el.parentElement, day: ev.day, y: null };
  el.classList.add('dragging');
}

function drawSelection() {
  const sel = drag.col.querySelector('.cal-selection');
  const top = Math.min(drag.startY, drag.endY), bottom = Math.max(drag.startY, drag.endY);
  const lo = snapFromY(top), hi = Math.max(lo + SNAP, snapFromY(bottom, true));
  sel.classList.remove('hidden');
  sel.style.top = (lo / 60) * HOUR_HEIGHT + 'px';
  sel.style.height = ((hi - lo) / 60) * HOUR_HEIGHT + 'px';
  sel.textContent = `${fmtMinutes(lo)} – ${fmtMinutes(hi)}`;
}

document.addEventListener('mousemove', (e) => {
  if (!drag) return;
  const y = offsetIn(drag.col, e);
  if (drag.kind === 'select') {
    drag.endY = y;
    drawSelection();
    return;
  }
  if (drag.updating) return;
  drag.y = y;
  const m = snapFromY(y, drag.mode === 'resize');
  const pos = drag.ev.position;
  if (drag.mode === 'move') {
    drag.el.style.top = (m / 60) * HOUR_HEIGHT + 'px';
  } else {
    const startM = (pos.top / HOUR_HEIGHT) * 60;
    drag.el.style.height = ((Math.max(startM + SNAP, m) - startM) / 60) * HOUR_HEIGHT + 'px';
  }
});

document.addEventListener('mouseup', async () => {
  if (!drag) return;
  const d = drag;
  if (d.kind === 'select') {
    drag = null;
    d.col.querySelector('.cal-selection').classList.add('hidden');
    try {
      pendingSelection = await post('/calendar/selection', { date: d.day, startY: d.startY, endY: d.endY });
      openEventModal();
    } catch (e) {
      showToast(e.message);
    }
    return;
  }
  if (d.updating) return;
  if (d.y === null) { d.el.classList.remove('dragging'); drag = null; return; }
  d.updating = true;
  try {
    await post(`/calendar/${encodeURIComponent(d.ev.id)}/drag`, {
      date: d.day, mode: d.mode, y: d.y,
      start: d.ev.start.dateTime, end: d.ev.end.dateTime,
    });
  } catch (e) {
    showToast(e.message);
  }
  drag = null;
  loadCalendar(true);
});

function openEventModal() {
  const s = new Date(pendingSelection.start), e = new Date(pendingSelection.end);
  document.getElementById('event-when').textContent =
    `${s.toLocaleDateString('en-US', { weekday: 'short', month: 'short', day: 'numeric' })} ` +
    `${s.toLocaleTimeString('en-US', { hour: '2-digit', minute: '2-digit' })} – ${e.toLocaleTimeString('en-US', { hour: '2-digit', minute: '2-digit' })}`;
  document.getElementById('event-title').value = '';
  document.getElementById('event-error').textContent = '';
  document.getElementById('event-modal').classList.add('open');
  document.getElementById('event-title').focus();
}

function closeEventModal() {
  pendingSelection = null;
  document.getElementById('event-modal').classList.remove('open');
}

async function saveEvent() {
  const title = document.getElementById('event-title').value.trim();
  if (!title) { document.getElementById('event-error').textContent = 'Enter a title'; return; }
  const btn = document.getElementById('event-save');
  btn.disabled = true;
  try {
    await post('/calendar', { title, start: pendingSelection.start, end: pendingSelection.end });
    closeEventModal();
    loadCalendar(true);
  } catch (e) {
    document.getElementById('event-error').textContent = e.message;
  } finally {
    btn.disabled = false;
  }
}

// ---- Chat ----

function addMessage(role, content, extra) {
  const log = document.getElementById('chat-log');
  const empty = log.querySelector('.empty');
  if (empty) empty.remove();
  const div = document.createElement('div');
  div.className = `msg ${role}${extra ? ' ' + extra : ''}`;
  div.textContent = content;
  log.appendChild(div);
  log.scrollTop = log.scrollHeight;
  return div;
}

async function sendChat() {
  const input = document.getElementById('chat-input');
  const message = input.value.trim();
  if (!message) return;
  input.value = '';
  addMessage('user', message);
  const pending = addMessage('assistant', '…', 'pending');
  document.getElementById('chat-send').disabled = true;
  try {
    const data = await post('/ai/chat', { message, sessionId, localDate: localDate() });
    pending.classList.remove('pending');
    pending.textContent = data.response;
    const failed = (data.executedTasks || []).filter(t => !t.success);
    if (failed.length) showToast(`${failed.length} action(s) failed: ${failed[0].error}`);
    if ((data.executedTasks || []).length) loadTasks(true);
  } catch (e) {
    pending.classList.remove('pending');
    pending.textContent = e.message;
  } finally {
    document.getElementById('chat-send').disabled = false;
  }
}

async function clearChat() {
  document.getElementById('chat-log').innerHTML = '';
  await post('/ai/clear', { sessionId }).catch(() => {});
  sessionId = 'session-' + Date.now();
}

// ---- Suggestions ----

let currentSuggestions = [];

function dismissedIds() {
  try { return JSON.parse(localStorage.getItem(DISMISSED_KEY) || '[]'); } catch (e) { return []; }
}

async function analyze(source) {
  const list = document.getElementById('sugg-list');
  list.innerHTML = '<div class="empty">Analyzing mail and events…</div>';
  try {
    const data = await post('/suggestions/analyze', { source, localDate: localDate(), dismissedIds: dismissedIds() });
    currentSuggestions = data.suggestions || [];
    localStorage.setItem(LAST_ANALYZED_KEY, localDate());
    renderSuggestions();
  } catch (e) {
    list.innerHTML = `<div class="error-box">${esc(e.message)}<br><button class="btn" onclick="analyze()">Try again</button></div>`;
  }
}

function renderSuggestions() {
  const badge = document.getElementById('sugg-count');
  badge.textContent = currentSuggestions.length;
  badge.classList.toggle('hidden', !currentSuggestions.length);
  const list = document.getElementById('sugg-list');
  if (!currentSuggestions.length) { list.innerHTML = '<div class="empty">Nothing to suggest right now</div>'; return; }
  list.innerHTML = currentSuggestions.map(s => `<div class="sugg-card">
    <div class="sugg-source ${s.source}">${s.source === 'gmail' ? 'Mail' : 'Event'}</div>
    <div class="sugg-title">${esc(s.title)}</div>
    ${s.due ? `<div class="sugg-meta">Due ${esc(s.due)}</div>` : ''}
    <div class="sugg-meta">${esc(s.sourceTitle)}${s.sourceFrom ? ' · ' + esc(s.sourceFrom) : ''}</div>
    ${s.sourceSnippet ? `<div class="sugg-snippet">${esc(s.sourceSnippet)}</div>` : ''}
    <div class="sugg-actions">
      <button class="btn btn-primary" onclick="acceptSuggestion('${esc(s.id)}', this)">Add task</button>
      <button class="btn" onclick="dismissSuggestion('${esc(s.id)}')">Dismiss</button>
    </div>
  </div>`).join('');
}

async function acceptSuggestion(id, btn) {
  const s = currentSuggestions.find(x => x.id === id);
  btn.disabled = true;
  try {
    await post('/tasks', { title: s.title, due: s.due, notes: s.notes });
    currentSuggestions = currentSuggestions.filter(x => x.id !== id);
    renderSuggestions();
    showToast('Task added ✓');
    loadTasks(true);
  } catch (e) {
    btn.disabled = false;
    showToast(e.message);
  }
}

function dismissSuggestion(id) {
  const s = currentSuggestions.find(x => x.id === id);
  const ids = new Set(dismissedIds());
  ids.add(s.sourceId);
  localStorage.setItem(DISMISSED_KEY, JSON.stringify([...ids]));
  currentSuggestions = currentSuggestions.filter(x => x.id !== id);
  renderSuggestions();
}

document.addEventListener('DOMContentLoaded', () => {
  document.getElementById('chat-input').addEventListener('keydown', (e) => {
    if (e.key === 'Enter' && !e.shiftKey) { e.preventDefault(); sendChat(); }
  });
  document.getElementById('event-title').addEventListener('keydown', (e) => {
    if (e.key === 'Enter') saveEvent();
    if (e.key === 'Escape') closeEventModal();
  });
});

setDate();
loadTasks();
setInterval(() => {
  loadTasks(true);
  if (!document.getElementById('calendar-view').classList.contains('hidden')) loadCalendar(true);
}, POLL_MS);
</script>
</body>
</html>
"""


def _body():
    return request.get_json(silent=True) or {}


def _error(message, status=500):
    return jsonify({'message': message}), status


def _result(result, status=200):
    """Turn a gog result dict into a response; failures become 500 with the CLI's error text."""
    if not result['success']:
        return _error(result['error'])
    if status == 204:
        return '', 204
    data = result['data']
    return jsonify(data if data is not None else []), status


def _local_tz():
    return datetime.now().astimezone().tzinfo


@app.route('/')
def index():
    return render_template_string(
        DASHBOARD_HTML,
        hour_height=calendar_grid.HOUR_HEIGHT,
        snap_minutes=calendar_grid.SNAP_MINUTES,
    )


@app.route('/api/health')
def api_health():
    return jsonify({'status': 'ok', 'timestamp': datetime.now().astimezone().isoformat()})


# --- Task lists ---

@app.route('/api/tasks/lists')
def api_task_lists():
    return _result(google_tasks.get_task_lists())


@app.route('/api/tasks/lists', methods=['POST'])
def api_create_task_list():
    title = (_body().get('title') or '').strip()
    if not title:
        return _error('Title is required', 400)
    return _result(google_tasks.create_task_list(title), 201)


@app.route('/api/tasks/lists/<list_id>', methods=['DELETE'])
def api_delete_task_list(list_id):
    return _result(google_tasks.delete_task_list(list_id), 204)


# --- Tasks ---

@app.route('/api/tasks')
def api_tasks():
    return _result(google_tasks.get_tasks(request.args.get('listId')))


@app.route('/api/tasks/grouped')
def api_tasks_grouped():
    list_id = request.args.get('listId')
    try:
        today = calendar_grid.parse_day(request.args['today']) if request.args.get('today') else None
    except ValueError:
        return _error('today must be YYYY-MM-DD', 400)

    result = google_tasks.get_tasks(list_id)
    if not result['success']:
        return _error(result['error'])

    tasks = [{**t, 'dueLabel': task_groups.format_due(t.get('due'), today)} for t in result['data']]
    return jsonify({'listId': list_id, 'groups': task_groups.group_tasks(tasks, today)})


@app.route('/api/tasks', methods=['POST'])
def api_create_task():
    body = _body()
    title = (body.get('title') or '').strip()
    if not title:
        return _error('Title is required', 400)
    result = google_tasks.create_task(
        title,
        notes=body.get('notes'),
        due=body.get('due'),
        list_id=body.get('listId'),
    )
    return _result(result, 201)


@app.route('/api/tasks/<task_id>', methods=['PATCH'])
def api_update_task(task_id):
    body = _body()
    list_id = body.get('listId')
    status = body.get('status')

    if status == 'completed':
        return _result(google_tasks.complete_task(task_id, list_id))
    if status == 'needsAction':
        return _result(google_tasks.uncomplete_task(task_id, list_id))

    result = google_tasks.update_task(
        task_id,
        title=body.get('title'),
        notes=body.get('notes'),
        due=body.get('due'),
        list_id=list_id,
    )
    return _result(result)


@app.route('/api/tasks/<task_id>', methods=['DELETE'])
def api_delete_task(task_id):
    return _result(google_tasks.delete_task(task_id, request.args.get('listId')), 204)


# --- Calendar ---

def _with_layout(events, start, end, mode, base_date):
    days = [base_date] if mode == 'day' else calendar_grid.week_days(base_date)
    laid_out = []
    for e in events:
        laid_out.append({
            **e,
            'day': google_calendar.event_start_date(e),
            'position': calendar_grid.event_position(e),
        })
    return {
        'start': start,
        'end': end,
        'days': [d.isoformat() for d in days],
        'nowOffset': calendar_grid.current_time_offset(),
        'events': laid_out,
    }


@app.route('/api/calendar')
def api_calendar():
    start = request.args.get('start')
    end = request.args.get('end')
    mode = request.args.get('mode', 'week')
    base_date = None

    if request.args.get('date'):
        try:
            base_date = calendar_grid.parse_day(request.args['date'])
        except ValueError:
            return _error('date must be YYYY-MM-DD', 400)
        range_start, range_end = calendar_grid.date_range(mode, base_date)
        tz = _local_tz()
        start = start or range_start.replace(tzinfo=tz).isoformat()
        end = end or range_end.replace(tzinfo=tz).isoformat()

    result = google_calendar.get_events_all_accounts(start, end)
    if not result['success']:
        return _error(result['error'])
    if result.get('errors'):
        logger.warning("Some calendars failed: %s", '; '.join(result['errors']))

    if request.args.get('layout') and base_date is not None:
        return jsonify(_with_layout(result['data'], start, end, mode, base_date))
    return jsonify(result['data'])


@app.route('/api/calendar', methods=['POST'])
def api_create_event():
    body = _body()
    title, start, end = body.get('title'), body.get('start'), body.get('end')
    if not title or not start or not end:
        return _error('title, start, and end are required', 400)
    return _result(google_calendar.create_event(title, start, end, body.get('calendarId') or 'primary'), 201)


@app.route('/api/calendar/<event_id>', methods=['PATCH'])
def api_update_event(event_id):
    body = _body()
    result = google_calendar.update_event(
        event_id,
        start=body.get('start'),
        end=body.get('end'),
        summary=body.get('summary'),
        calendar_id=body.get('calendarId') or 'primary',
    )
    return _result(result)


@app.route('/api/calendar/selection', methods=['POST'])
def api_calendar_selection():
    """Pixel offsets of a drag on the day grid -> snapped start/end."""
    body = _body()
    try:
        day = calendar_grid.parse_day(body['date'])
        start_y = float(body['startY'])
        end_y = float(body['endY'])
    except (KeyError, TypeError, ValueError):
        return _error('date, startY and endY are required', 400)

    start, end = calendar_grid.selection_from_offsets(day, start_y, end_y, tzinfo=_local_tz())
    return jsonify({'start': start.isoformat(), 'end': end.isoformat()})


@app.route('/api/calendar/<event_id>/drag', methods=['POST'])
def api_drag_event(event_id):
    """Finish an event move/resize: one update call, and only if the time changed."""
    body = _body()
    mode = body.get('mode')
    try:
        day = calendar_grid.parse_day(body['date'])
        y = float(body['y'])
        original_start = calendar_grid.parse_event_time(body['start'])
        original_end = calendar_grid.parse_event_time(body['end'])
    except (KeyError, TypeError, ValueError, AttributeError):
        return _error('date, y, start and end are required', 400)
    if mode not in ('move', 'resize') or original_start is None or original_end is None:
        return _error('mode must be move or resize', 400)

    if mode == 'move':
        start, end = calendar_grid.move_event(original_start, original_end, day, y)
    else:
        start, end = calendar_grid.resize_event(original_start, day, y)

    response = {'start': start.isoformat(), 'end': end.isoformat(), 'changed': False, 'event': None}
    if start == original_start and end == original_end:
        return jsonify(response)

    result = google_calendar.update_event(
        event_id,
        start=start.isoformat(),
        end=end.isoformat(),
        calendar_id=body.get('calendarId') or 'primary',
    )
    if not result['success']:
        return _error(result['error'])
    response.update(changed=True, event=result['data'])
    return jsonify(response)


# --- AI chat ---

@app.route('/api/ai/chat', methods=['POST'])
def api_ai_chat():
    body = _body()
    message = (body.get('message') or '').strip()
    if not message:
        return _error('Message is required', 400)
    session_id = body.get('sessionId') or 'default'

    conversations.append_message(session_id, 'user', message)
    try:
        context = conversations.recent_context(session_id)
        existing = google_tasks.get_all_open_tasks()
        logger.debug("Open tasks for chat: %s", [(t['id'], t['title']) for t in existing])

        result = task_extractor.extract_actions(message, context, body.get('localDate'), existing)
        logger.info("Extracted actions: %s", [(a['action'], a['title']) for a in result['tasks']])

        executed = task_extractor.execute_actions(result['tasks'])
        conversations.append_message(session_id, 'assistant', result['response'])
        return jsonify({'response': result['response'], 'executedTasks': executed})
    except Exception:
        logger.exception("AI chat failed")
        return jsonify({
            'message': 'AI processing failed',
            'response': 'Something went wrong. Please try again.',
            'executedTasks': [],
        }), 500


@app.route('/api/ai/clear', methods=['POST'])
def api_ai_clear():
    conversations.clear_conversation(_body().get('sessionId') or 'default')
    return jsonify({'success': True})


# --- Suggestions ---

@app.route('/api/suggestions/analyze', methods=['POST'])
def api_analyze_suggestions():
    body = _body()
    source = body.get('source')
    local_date = body.get('localDate')
    dismissed = body.get('dismissedIds') or []

    try:
        if source == 'gmail':
            found = suggestions.filter_dismissed(suggestions.analyze_emails(local_date), dismissed)
            return jsonify({'success': True, 'suggestions': found})
        if source == 'calendar':
            found = suggestions.filter_dismissed(suggestions.analyze_calendar(local_date), dismissed)
            return jsonify({'success': True, 'suggestions': found})

        both = suggestions.analyze_both(local_date)
        gmail = suggestions.filter_dismissed(both['gmail'], dismissed)
        calendar = suggestions.filter_dismissed(both['calendar'], dismissed)
        return jsonify({
            'success': True,
            'suggestions': gmail + calendar,
            'gmail': gmail,
            'calendar': calendar,
        })
    except Exception as e:
        logger.exception("Suggestion analysis failed")
        return jsonify({'success': False, 'error': str(e) or 'Analysis failed'}), 500


def main():
    setup_logging(log_dir=config.LOG_DIR, console_level=config.LOG_LEVEL)
    port = config.DASHBOARD_PORT
    print(f"Taskdeck Dashboard → http://localhost:{port}")
    app.run(host='127.0.0.1', port=port, debug=False)


if __name__ == '__main__':
    main()
