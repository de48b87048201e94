# main.py

import os

from config import DATA_DIR
from modules.time_series import load_csv
from modules.pipeline import run_analysis
from modules.reporting import validate_analysis, plot_analysis

if __name__ == "__main__":
    prices = load_csv(os.path.join(DATA_DIR, "prices.csv"))

    sentiment_path = os.path.join(DATA_DIR, "sentiment.csv")
    sentiment = load_csv(sentiment_path) if os.path.exists(sentiment_path) else None

    rows, rejected = run_analysis(prices, sentiment)
    validate_analysis(rows)

    for symbol in rows['symbol'].unique():
        plot_analysis(rows, symbol)

    # Quick look at the latest signals
    print(rows[['symbol', 'date', 'close', 'rsi', 'trend_signal',
                'bollinger_signal', 'pattern_type', 'market_sentiment_score']].tail(15).to_string())
