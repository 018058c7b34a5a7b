from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

import config
from tasks.alert_tasks import run_daily_alert_reconciliation

scheduler = BackgroundScheduler(timezone=config.APP_TIMEZONE)

# Daily alert pass in the pharmacy's timezone
scheduler.add_job(
    run_daily_alert_reconciliation,
    CronTrigger(hour=config.ALERT_JOB_HOUR, minute=0, timezone=config.APP_TIMEZONE),
    id='daily_alert_reconciliation_job',
    replace_existing=True,
)
