# services -- credentials, accounts, notifications, AI analysis, matching
