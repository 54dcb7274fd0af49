"""
Flask server exposing the word index over JSON-RPC.
"""

from flask import Flask, request, jsonify

from .indexes.word_index import WordIndex
from .rpc import handle_request

DEFAULT_DB_PATH = "db.txt"

app = Flask(__name__)
word_index = None


def init_index(db_path=DEFAULT_DB_PATH):
    """Load the corpus and build the word index. Errors propagate."""
    global word_index
    word_index = WordIndex.build(db_path)
    return word_index


def get_index() -> WordIndex:
    """Get the loaded word index."""
    if word_index is None:
        raise RuntimeError("Word index has not been loaded")
    return word_index


# ============== API Endpoints ==============

@app.route('/', methods=['POST'])
def rpc():
    """JSON-RPC 2.0 endpoint (single request or batch)."""
    response = handle_request(request.get_data(), get_index())

    if response is None:
        return '', 204
    return jsonify(response)


@app.route('/stats', methods=['GET'])
def stats():
    """Get index statistics."""
    index = get_index()
    return jsonify({
        "line_count": index.line_count,
        "token_count": index.token_count
    })


@app.route('/health', methods=['GET'])
def health():
    """Health check endpoint."""
    return jsonify({"status": "ok"})


def create_app(db_path=DEFAULT_DB_PATH, index=None):
    """Factory function: bind the app to a prebuilt index or load one from db_path."""
    global word_index
    if index is not None:
        word_index = index
    else:
        init_index(db_path)
    return app
