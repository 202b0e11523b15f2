import csv
import os
from datetime import datetime, timezone

from parkpay.celery_app import celery
from parkpay.models import db
from parkpay.store import LedgerStore

CSV_HEADERS = ['Timestamp', 'Logged At (UTC)', 'Type', 'Amount', 'Fee', 'Net Change']


def get_app_context():
    """Flask app bound by init_celery, or a fresh one for a bare worker."""
    app = getattr(celery, 'flask_app', None)
    if app is None:
        from parkpay.app import create_app
        app = create_app()
    return app


def _statement_row(entry):
    amount = int(entry.amount)
    fee = int(entry.fee)
    if entry.kind == 'deposit':
        net = amount
    else:
        net = -(amount - fee)
    logged_at = datetime.fromtimestamp(entry.timestamp // 10**9, tz=timezone.utc).strftime('%Y-%m-%d %H:%M:%S')
    return [entry.timestamp, logged_at, entry.kind.title(), amount, fee, net]


@celery.task(bind=True)
def export_user_transactions_csv(self, user_id):
    """
    User triggered async job - Export a user's transaction log as a CSV statement
    """
    try:
        app = get_app_context()
        with app.app_context():
            print(f"🔄 Starting transaction export for user {user_id}...")
            store = LedgerStore(db.session, app.ledger_clock)

            user = store.users.get(user_id)
            if not user:
                return {"status": "error", "message": "User not found"}

            rows = [_statement_row(entry) for entry in store.transactions.filter(user_id=user.id)]

            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            filename = f"statement_{user.username}_{timestamp}.csv"
            filepath = os.path.join(app.config['EXPORT_DIR'], filename)
            os.makedirs(os.path.dirname(filepath), exist_ok=True)

            with open(filepath, 'w', newline='', encoding='utf-8') as csvfile:
                writer = csv.writer(csvfile)
                writer.writerow(CSV_HEADERS)
                writer.writerows(rows)

            print(f"✅ Transaction export completed for user {user_id}. File: {filename}")
            return {
                "status": "success",
                "message": f"Statement export completed successfully. {len(rows)} records exported.",
                "filename": filename,
                "records_count": len(rows),
                "file_path": filepath,
            }

    except (OSError, ValueError) as e:
        print(f"❌ Transaction export failed for user {user_id}: {str(e)}")
        return {
            "status": "error",
            "message": f"Export failed: {str(e)}",
        }
