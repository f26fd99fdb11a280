from coldapply.cli import main

main()
