"""Sequential, rate-limited orchestration of scrape tasks.

A scheduler polls on a short fixed period and starts one scrape session at a
time, no sooner than the configured spacing after the previous dispatch and
never before the previous session has finished. Each session runs the
external engine against an isolated workspace directory and turns the
engine's event stream into ``results.json`` (and optionally a stdout line and
a converted file).
"""
