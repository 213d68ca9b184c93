from flask import Blueprint, jsonify

from backend.db import get_db
from backend.errors import handles_errors
from backend.security import current_user_id, is_auth, require_owner
from backend.uploads import clear_image

from ..schemas import TweetIn, parse_payload
from ..services import social
from . import pick_image, removed_on_error

bp = Blueprint("tweets", __name__, url_prefix="/tweets")


@bp.get("")
@handles_errors("Fetching tweets failed")
def list_tweets():
    return jsonify({"message": "Tweets fetched successfully", "tweets": social.list_tweets(get_db())})


@bp.get("/<int:tweet_id>")
@handles_errors("Fetching tweet failed")
def get_tweet(tweet_id: int):
    return jsonify({"message": "Tweet fetched successfully", "tweet": social.tweet_detail(get_db(), tweet_id)})


@bp.post("")
@is_auth
@handles_errors("Tweet creation failed")
def create_tweet():
    data = parse_payload(TweetIn)
    image_url = pick_image(None, data.image)
    with removed_on_error(image_url):
        tweet = social.create_tweet(get_db(), data.text, image_url, current_user_id())
    return jsonify({"message": "Tweet created successfully", "tweet": tweet}), 201


@bp.put("/<int:tweet_id>")
@is_auth
@handles_errors("Tweet update failed")
def update_tweet(tweet_id: int):
    conn = get_db()
    current = social.get_tweet_row(conn, tweet_id)
    require_owner(current["creator_id"])
    data = parse_payload(TweetIn)
    # No file and no kept URL means the image was removed.
    image_url = pick_image(current["image_url"], data.image)

    fresh = image_url if image_url != current["image_url"] else None
    with removed_on_error(fresh):
        tweet = social.update_tweet(conn, tweet_id, data.text, image_url)
    if current["image_url"] and image_url != current["image_url"]:
        clear_image(current["image_url"])
    return jsonify({"message": "Tweet updated successfully", "tweet": tweet})


@bp.put("/like/<int:tweet_id>")
@is_auth
@handles_errors("Liking tweet failed")
def like_tweet(tweet_id: int):
    liked, tweet = social.toggle_tweet(get_db(), tweet_id, current_user_id(), "tweet_likes")
    return jsonify({"message": "Tweet liked successfully", "liked": liked, "tweet": tweet})


@bp.put("/retweet/<int:tweet_id>")
@is_auth
@handles_errors("Retweet failed")
def retweet(tweet_id: int):
    retweeted, tweet = social.toggle_tweet(get_db(), tweet_id, current_user_id(), "tweet_retweets")
    return jsonify({"message": "Retweet success", "retweeted": retweeted, "tweet": tweet})


@bp.delete("/<int:tweet_id>")
@is_auth
@handles_errors("Tweet deletion failed")
def delete_tweet(tweet_id: int):
    conn = get_db()
    current = social.get_tweet_row(conn, tweet_id)
    require_owner(current["creator_id"])
    social.delete_tweet(conn, tweet_id)
    clear_image(current["image_url"])
    return jsonify({"message": "Tweet deleted successfully"})
