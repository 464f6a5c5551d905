"""
Lua sources of the atomic procedures executed inside Redis, dood!

Every script gets the label set key as KEYS[1] and the namespace as ARGV[1].
Per-label keys are derived inside the script from the namespace, so the whole
procedure (including enumerating the label set) runs as one indivisible step.

Argument vectors after the namespace:

    flush:    (nothing)
    train:    label, N, token_1 .. token_N, count_1 .. count_N
    untrain:  label, N, token_1 .. token_N, count_1 .. count_N
    scores:   correction, N, token_1 .. token_N, count_1 .. count_N
    classify: correction, N, token_1 .. token_N, count_1 .. count_N

Counts are integers in 1..MAX_COUNT and no tally may grow past MAX_COUNT, so
every number stays exact as a Lua double. train and untrain check this before
their first write and answer with an "ERR count out of range" error otherwise.
"""

from .models import COUNT_OUT_OF_RANGE, MAX_COUNT, TALLY_PREFIX

TALLY_PREFIX_LUA = f"local TALLY_PREFIX = '{TALLY_PREFIX}'\n"

# Shared by train and untrain: every count is checked before the first write,
# Redis doesn't roll back a script failing halfway
COUNTS_LUA = (
    TALLY_PREFIX_LUA
    + f"local MAX_COUNT = {MAX_COUNT}\n"
    + f"local OUT_OF_RANGE = 'ERR {COUNT_OUT_OF_RANGE}: '\n"
    + """
-- Integer counts in 1..MAX_COUNT, or nil and the offending argument
local function read_counts(num_tokens)
    local counts = {}
    for i = 1, num_tokens do
        local arg   = ARGV[3 + num_tokens + i]
        local count = tonumber(arg)
        if not count or count ~= math.floor(count) or count < 1 or count > MAX_COUNT then
            return nil, arg
        end
        counts[i] = count
    end
    return counts
end
"""
)

LUA_FLUSH = (
    TALLY_PREFIX_LUA
    + """
local namespace = ARGV[1]
local labels = redis.call('smembers', KEYS[1])

for _, label in ipairs(labels) do
    redis.call('del', namespace .. label, namespace .. TALLY_PREFIX .. label)
end
redis.call('del', KEYS[1])

return #labels
"""
)

LUA_TRAIN = (
    COUNTS_LUA
    + """
local namespace  = ARGV[1]
local label      = ARGV[2]
local num_tokens = tonumber(ARGV[3])
local table_key  = namespace .. label
local tally_key  = namespace .. TALLY_PREFIX .. label

local counts, bad = read_counts(num_tokens)
if not counts then
    return redis.error_reply(OUT_OF_RANGE .. tostring(bad))
end

local total = 0
for i = 1, num_tokens do
    total = total + counts[i]
    if total > MAX_COUNT then
        return redis.error_reply(OUT_OF_RANGE .. 'total of ' .. label)
    end
end

local tally = tonumber(redis.call('get', tally_key)) or 0

-- Nothing to add: a label never exists with a non-positive tally
if total <= 0 then
    return tally
end

-- The table sums to the tally, so this also bounds every token count
if tally + total > MAX_COUNT then
    return redis.error_reply(OUT_OF_RANGE .. 'tally of ' .. label)
end

redis.call('sadd', KEYS[1], label)
for i = 1, num_tokens do
    redis.call('hincrby', table_key, ARGV[3 + i], counts[i])
end

return redis.call('incrby', tally_key, total)
"""
)

LUA_UNTRAIN = (
    COUNTS_LUA
    + """
local namespace  = ARGV[1]
local label      = ARGV[2]
local num_tokens = tonumber(ARGV[3])
local table_key  = namespace .. label
local tally_key  = namespace .. TALLY_PREFIX .. label

local counts, bad = read_counts(num_tokens)
if not counts then
    return redis.error_reply(OUT_OF_RANGE .. tostring(bad))
end

for i = 1, num_tokens do
    local token   = ARGV[3 + i]
    local delta   = counts[i]
    local current = tonumber(redis.call('hget', table_key, token))

    if current and current - delta > 0 then
        redis.call('hincrby', table_key, token, -delta)
    else
        redis.call('hdel', table_key, token)
    end
end

-- Fresh sum over the table, counts were clamped by deletion above
local tally = 0
for _, value in ipairs(redis.call('hvals', table_key)) do
    tally = tally + tonumber(value)
end

if tally <= 0 then
    redis.call('del', table_key, tally_key)
    redis.call('srem', KEYS[1], label)
    return 0
end

redis.call('set', tally_key, tally)
return tally
"""
)

# Shared by the scores and classify procedures
LUA_SCORING = (
    TALLY_PREFIX_LUA
    + """
local function bytewise_less(a, b)
    local len = math.min(#a, #b)
    for i = 1, len do
        local x, y = string.byte(a, i), string.byte(b, i)
        if x ~= y then
            return x < y
        end
    end
    return #a < #b
end

local function query_tokens()
    local num_tokens = tonumber(ARGV[3])
    local tokens = {}
    for i = 1, num_tokens do
        tokens[i] = ARGV[3 + i]
    end
    return tokens
end

-- Returns {label, score, matched} triples in byte order of labels
local function score_labels(labels_key, namespace, correction, tokens)
    local labels = redis.call('smembers', labels_key)
    table.sort(labels, bytewise_less)

    local results = {}
    for _, label in ipairs(labels) do
        local tally = tonumber(redis.call('get', namespace .. TALLY_PREFIX .. label)) or 0

        if tally > 0 then
            local table_key = namespace .. label
            local score     = 0.0
            local matched   = false

            for _, token in ipairs(tokens) do
                local count = tonumber(redis.call('hget', table_key, token))
                if count and count > 0 then
                    matched = true
                else
                    count = correction
                end
                score = score + math.log(count / tally)
            end

            results[#results + 1] = {label, score, matched}
        end
    end

    return results
end
"""
)

LUA_SCORES = (
    LUA_SCORING
    + """
local results = score_labels(KEYS[1], ARGV[1], tonumber(ARGV[2]), query_tokens())

-- Lua numbers would be truncated to integers in the reply
local reply = {}
for _, entry in ipairs(results) do
    reply[#reply + 1] = entry[1]
    reply[#reply + 1] = string.format('%.17g', entry[2])
end

return reply
"""
)

LUA_CLASSIFY = (
    LUA_SCORING
    + """
local results = score_labels(KEYS[1], ARGV[1], tonumber(ARGV[2]), query_tokens())

local best_label = false
local best_score = nil
local any_match  = false

-- Strictly greater: on ties the first label in byte order wins
for _, entry in ipairs(results) do
    if entry[3] then
        any_match = true
    end
    if best_score == nil or entry[2] > best_score then
        best_label = entry[1]
        best_score = entry[2]
    end
end

if not any_match then
    return false
end

return best_label
"""
)

SCRIPTS = {
    "flush": LUA_FLUSH,
    "train": LUA_TRAIN,
    "untrain": LUA_UNTRAIN,
    "scores": LUA_SCORES,
    "classify": LUA_CLASSIFY,
}
